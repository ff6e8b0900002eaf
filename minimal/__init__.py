# ==============================================================================
# MINIMAL PACKAGE INITIALIZATION
# ==============================================================================
# Less boilerplate around FastAPI and SQLAlchemy
# ==============================================================================

"""
minimal
=======

Declare a SQLAlchemy model, wrap it in a ``Resource`` and get REST CRUD
routes, table migration and consistent JSON envelopes for it. The
``Server`` adds logging, security headers, template rendering and
plain-HTTP or TLS startup.

Usage:
------
    from minimal import Resource, Server, development_config

    todos = Resource(Todo)
    todos.set_create_bind_type(TodoIn)
    todos.set_write_bind_type(TodoPatch)

    config = development_config()
    config.DSN = "sqlite:///./app.db"
    Server(config, [todos], []).init()
"""

from minimal.core.exceptions import (
    AppException,
    ConfigurationError,
    DatabaseError,
    InvalidDataError,
    InvalidIDError,
    NoBindTypeError,
    NoResourceAccessError,
    NoResourceFoundError,
)
from minimal.core.settings import Config, development_config, get_config
from minimal.database import Database, Model, SessionDep
from minimal.provider import Provider
from minimal.rendering import TemplateRenderer, render
from minimal.resource import Resource
from minimal.schemas.response import fail, fail_code, ok, ok_code
from minimal.server import Server

__version__ = "1.0.0"

__all__ = [
    "AppException",
    "ConfigurationError",
    "DatabaseError",
    "InvalidDataError",
    "InvalidIDError",
    "NoBindTypeError",
    "NoResourceAccessError",
    "NoResourceFoundError",
    "Config",
    "development_config",
    "get_config",
    "Database",
    "Model",
    "SessionDep",
    "Provider",
    "TemplateRenderer",
    "render",
    "Resource",
    "fail",
    "fail_code",
    "ok",
    "ok_code",
    "Server",
    "__version__",
]
