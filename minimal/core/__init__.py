# ==============================================================================
# CORE PACKAGE INITIALIZATION
# ==============================================================================

"""
Core Module
===========

Configuration, error hierarchy and logging shared by every layer.
"""

from minimal.core.settings import Config, development_config, get_config
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
from minimal.core.logging import setup_logging, get_logger

__all__ = [
    "Config",
    "development_config",
    "get_config",
    "AppException",
    "ConfigurationError",
    "DatabaseError",
    "InvalidDataError",
    "InvalidIDError",
    "NoBindTypeError",
    "NoResourceAccessError",
    "NoResourceFoundError",
    "setup_logging",
    "get_logger",
]
