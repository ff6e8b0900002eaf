# ==============================================================================
# CONFTEST - Pytest Fixtures and Configuration
# ==============================================================================
# Shared fixtures for all tests
# ==============================================================================

from __future__ import annotations

from typing import AsyncGenerator, Awaitable, Callable, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from minimal.core.settings import Config, development_config
from minimal.database.engine import Database
from minimal.server import Server


@pytest.fixture(autouse=True)
def reset_database():
    """Every test starts without an engine or queued models."""
    Database.reset()
    yield
    Database.reset()


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'test_app.db'}"


@pytest.fixture
def config(tmp_path, db_url) -> Config:
    """Development config pointed at a throwaway SQLite file."""
    template_dir = tmp_path / "www"
    template_dir.mkdir()

    cfg = development_config()
    cfg.DSN = db_url
    cfg.TEMPLATE_DIR = str(template_dir)
    cfg.LOG_LEVEL = "DEBUG"
    return cfg


# ==============================================================================
# HTTP CLIENT FIXTURES
# ==============================================================================

@pytest_asyncio.fixture
async def serve(config: Config) -> AsyncGenerator[Callable[..., Awaitable[AsyncClient]], None]:
    """
    Build a server from providers and return an in-process client.

    The transport does not run lifespans, so startup/shutdown are driven
    here directly.
    """
    servers: List[Server] = []
    clients: List[AsyncClient] = []

    async def _serve(
        *providers,
        models=(),
        cfg: Config | None = None,
        raise_app_exceptions: bool = True,
    ) -> AsyncClient:
        server = Server(cfg or config, list(providers), list(models))
        app = server.build()
        await server.startup()
        servers.append(server)

        transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        client = AsyncClient(transport=transport, base_url="http://test")
        clients.append(client)
        return client

    yield _serve

    for client in clients:
        await client.aclose()
    for server in servers:
        await server.shutdown()
