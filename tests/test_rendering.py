# ==============================================================================
# RENDERING TESTS
# ==============================================================================

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from jinja2 import DictLoader

from minimal.core.exceptions import ConfigurationError
from minimal.rendering import TemplateRenderer, render


def page_app(renderer=None) -> FastAPI:
    app = FastAPI()
    if renderer is not None:
        app.state.renderer = renderer

    @app.get("/hello/{name}")
    async def hello(request: Request, name: str):
        return render(request, "hello.html", {"name": name}, status_code=202)

    return app


class TestTemplateRenderer:

    def test_needs_a_source(self):
        with pytest.raises(ConfigurationError):
            TemplateRenderer()

    @pytest.mark.asyncio
    async def test_renders_from_loader_with_escaping(self):
        renderer = TemplateRenderer(loader=DictLoader({"hello.html": "<p>Hi {{ name }}</p>"}))
        transport = ASGITransport(app=page_app(renderer))

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/hello/<i>ann")

        assert response.status_code == 202
        assert response.text == "<p>Hi &lt;i&gt;ann</p>"

    @pytest.mark.asyncio
    async def test_renders_from_directory(self, tmp_path):
        (tmp_path / "hello.html").write_text("Hello {{ name }}")
        transport = ASGITransport(app=page_app(TemplateRenderer(tmp_path)))

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/hello/bob")

        assert response.text == "Hello bob"

    @pytest.mark.asyncio
    async def test_render_without_renderer(self):
        transport = ASGITransport(app=page_app())

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            with pytest.raises(ConfigurationError):
                await client.get("/hello/bob")
