# ==============================================================================
# DATABASE PACKAGE INITIALIZATION
# ==============================================================================

"""
Database Module
===============

Model base class, engine lifecycle and auto-migration.
"""

from minimal.database.base import Model
from minimal.database.engine import Database, SessionDep, get_session

__all__ = [
    "Model",
    "Database",
    "SessionDep",
    "get_session",
]
