# ==============================================================================
# DATABASE TESTS
# ==============================================================================
# Engine lifecycle, sessions and auto-migration against SQLite
# ==============================================================================

import logging

import pytest
from sqlalchemy import inspect, select, text

from minimal.core.exceptions import DatabaseError
from minimal.database.engine import Database

from sample_models import Gadget, Todo


async def column_names(table: str) -> set:
    async with Database.get_engine().connect() as conn:
        columns = await conn.run_sync(lambda c: inspect(c).get_columns(table))
    return {column["name"] for column in columns}


async def table_names() -> set:
    async with Database.get_engine().connect() as conn:
        return set(await conn.run_sync(lambda c: inspect(c).get_table_names()))


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_init_and_shutdown(self, db_url):
        engine = await Database.init_database(db_url)

        assert Database.is_initialized
        assert engine.url.drivername == "sqlite+aiosqlite"
        assert await Database.health_check()

        await Database.shutdown()

        assert not Database.is_initialized
        assert not await Database.health_check()

    @pytest.mark.asyncio
    async def test_unreachable_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'app.db'}"

        with pytest.raises(DatabaseError):
            await Database.init_database(url)

        assert not Database.is_initialized

    @pytest.mark.asyncio
    async def test_session_requires_init(self):
        with pytest.raises(RuntimeError):
            async with Database.session():
                pass


class TestSessions:

    @pytest.mark.asyncio
    async def test_commit_on_success(self, db_url):
        await Database.init_database(db_url)
        await Database.auto_migrate(Todo)

        async with Database.session() as session:
            session.add(Todo(title="persist"))

        async with Database.session() as session:
            titles = (await session.execute(select(Todo.title))).scalars().all()

        assert titles == ["persist"]
        await Database.shutdown()

    @pytest.mark.asyncio
    async def test_rollback_on_error(self, db_url):
        await Database.init_database(db_url)
        await Database.auto_migrate(Todo)

        with pytest.raises(ValueError):
            async with Database.session() as session:
                session.add(Todo(title="discard"))
                await session.flush()
                raise ValueError("abort")

        async with Database.session() as session:
            count = len((await session.execute(select(Todo))).scalars().all())

        assert count == 0
        await Database.shutdown()


class TestAutoMigrate:

    @pytest.mark.asyncio
    async def test_creates_table(self, db_url, caplog):
        await Database.init_database(db_url)

        with caplog.at_level(logging.INFO, logger="minimal"):
            assert await Database.auto_migrate(Todo)

        assert "todos" in await table_names()
        assert {"id", "title", "done", "owner", "created_at", "updated_at"} <= await column_names("todos")
        assert "Migrated model of type Todo" in caplog.text
        await Database.shutdown()

    @pytest.mark.asyncio
    async def test_is_idempotent(self, db_url):
        await Database.init_database(db_url)

        assert await Database.auto_migrate(Todo)
        assert await Database.auto_migrate(Todo)
        await Database.shutdown()

    @pytest.mark.asyncio
    async def test_adds_missing_columns(self, db_url):
        await Database.init_database(db_url)
        async with Database.get_engine().begin() as conn:
            await conn.execute(text(
                "CREATE TABLE gadgets ("
                "id INTEGER PRIMARY KEY, created_at DATETIME, updated_at DATETIME, "
                "name VARCHAR(100) NOT NULL)"
            ))
            await conn.execute(text("INSERT INTO gadgets (name) VALUES ('lamp')"))

        assert await Database.auto_migrate(Gadget)

        assert "color" in await column_names("gadgets")
        async with Database.session() as session:
            gadget = (await session.execute(select(Gadget))).scalar_one()
        assert gadget.name == "lamp"
        assert gadget.color is None
        await Database.shutdown()

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, db_url, caplog, monkeypatch):
        from sqlalchemy.exc import OperationalError

        import minimal.database.engine as engine_module

        def explode(conn, table):
            raise OperationalError("ALTER TABLE", {}, Exception("disk I/O error"))

        await Database.init_database(db_url)
        monkeypatch.setattr(engine_module, "_migrate_table", explode)

        with caplog.at_level(logging.ERROR, logger="minimal"):
            assert await Database.auto_migrate(Todo) is False

        assert "Unable to migrate model Todo" in caplog.text
        await Database.shutdown()


class TestRegisteredModels:

    def test_register_ignores_duplicates(self):
        Database.register_model(Todo)
        Database.register_model(Todo)
        Database.register_model(Gadget)

        assert Database._pending_models == [Todo, Gadget]

    @pytest.mark.asyncio
    async def test_migrate_registered(self, db_url):
        await Database.init_database(db_url)
        Database.register_model(Todo)
        Database.register_model(Gadget)

        await Database.migrate_registered()

        assert {"todos", "gadgets"} <= await table_names()
        await Database.shutdown()
