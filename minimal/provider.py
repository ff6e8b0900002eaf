# ==============================================================================
# PROVIDER - Route Registration Contract
# ==============================================================================

from __future__ import annotations

from typing import Protocol, runtime_checkable

from fastapi import FastAPI


@runtime_checkable
class Provider(Protocol):
    """
    Anything that can add routes to the application.

    ``Resource`` implements it; so can a plain class serving pages:

        >>> class BaseRoutes:
        ...     def register(self, app: FastAPI) -> None:
        ...         @app.get("/")
        ...         async def index(request: Request):
        ...             return render(request, "index.html")
    """

    def register(self, app: FastAPI) -> None:
        ...
