# ==============================================================================
# RENDERING - Jinja2 Template Renderer
# ==============================================================================

from __future__ import annotations

import os
from typing import Any, Dict, Optional, Union

from fastapi import Request
from jinja2 import BaseLoader, Environment, select_autoescape
from starlette.responses import Response
from starlette.templating import Jinja2Templates

from minimal.core.exceptions import ConfigurationError


class TemplateRenderer:
    """
    Renders Jinja2 templates into HTML responses.

    Templates come from a directory on disk, or from any Jinja2 loader
    (``PackageLoader`` for templates shipped inside a package,
    ``DictLoader`` for tests).

    Example:
        >>> renderer = TemplateRenderer("www")
        >>> renderer.render(request, "index.html", {"title": "Home"})
    """

    def __init__(
        self,
        directory: Optional[Union[str, os.PathLike]] = None,
        loader: Optional[BaseLoader] = None,
    ) -> None:
        if loader is not None:
            env = Environment(loader=loader, autoescape=select_autoescape())
            self.templates = Jinja2Templates(env=env)
        elif directory is not None:
            self.templates = Jinja2Templates(directory=str(directory))
        else:
            raise ConfigurationError("TemplateRenderer needs a directory or a loader")

        self.directory = directory

    def render(
        self,
        request: Request,
        name: str,
        context: Optional[Dict[str, Any]] = None,
        status_code: int = 200,
    ) -> Response:
        return self.templates.TemplateResponse(
            request,
            name,
            context or {},
            status_code=status_code,
        )


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
) -> Response:
    """
    Render ``name`` with the renderer installed on the request's app.

    Raises:
        ConfigurationError: If the app has no renderer
    """
    renderer: Optional[TemplateRenderer] = getattr(request.app.state, "renderer", None)
    if renderer is None:
        raise ConfigurationError("No template renderer installed on the application")
    return renderer.render(request, name, context, status_code)
