# ==============================================================================
# DATABASE - Engine Lifecycle & Auto-Migration
# ==============================================================================
# Process-wide async engine, session scope and model migration
# ==============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Annotated, AsyncIterator, List, Optional, Type

from fastapi import Depends
from sqlalchemy import Table, inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from minimal.core.exceptions import DatabaseError
from minimal.core.settings import async_database_url
from minimal.database.base import Model

logger = logging.getLogger(__name__)


def _migrate_table(conn: Connection, table: Table) -> List[str]:
    """
    Create ``table`` if missing, then add mapped columns the table lacks.

    Added columns are always nullable so existing rows stay valid.

    Returns:
        Names of the columns that were added
    """
    table.create(conn, checkfirst=True)

    existing = {
        column["name"]
        for column in inspect(conn).get_columns(table.name, schema=table.schema)
    }
    preparer = conn.dialect.identifier_preparer

    added = []
    for column in table.columns:
        if column.name in existing:
            continue
        column_type = column.type.compile(dialect=conn.dialect)
        conn.execute(
            text(
                f"ALTER TABLE {preparer.format_table(table)} "
                f"ADD COLUMN {preparer.format_column(column)} {column_type}"
            )
        )
        added.append(column.name)

    return added


class Database:
    """
    Process-wide database state.

    Holds the single async engine the server and every resource share.
    All members are class-level; the class is never instantiated.

    Class Attributes:
        is_initialized: True once ``init_database`` succeeded
        _engine: SQLAlchemy async engine
        _session_factory: Session factory bound to the engine
        _pending_models: Models queued for migration at startup

    Example:
        >>> await Database.init_database("sqlite:///./app.db")
        >>> await Database.auto_migrate(Todo)
        >>> async with Database.session() as session:
        ...     session.add(Todo(title="write docs"))
    """

    is_initialized: bool = False
    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _pending_models: List[Type[Model]] = []

    # ==========================================================================
    # LIFECYCLE METHODS
    # ==========================================================================

    @classmethod
    async def init_database(cls, dsn: str) -> AsyncEngine:
        """
        Open the database and verify connectivity.

        SQL statement logging stays off regardless of the log level.

        Args:
            dsn: Database URL; plain sqlite/postgresql URLs are switched
                to their async drivers

        Returns:
            The connected engine

        Raises:
            DatabaseError: If the database cannot be reached
        """
        url = async_database_url(dsn)
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}

        try:
            engine = create_async_engine(url, echo=False, connect_args=connect_args)
        except (SQLAlchemyError, ImportError, ValueError) as e:
            logger.error(f"Invalid database URL: {e}")
            raise DatabaseError(f"Unable to connect to database: {e}")

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            await engine.dispose()
            logger.error(f"Failed to connect to database: {e}")
            raise DatabaseError(f"Unable to connect to database: {e}")

        cls._engine = engine
        cls._session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        cls.is_initialized = True

        logger.info(f"Database connected: {engine.url.render_as_string(hide_password=True)}")
        return engine

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine and forget connection state."""
        if cls._engine is not None:
            await cls._engine.dispose()
            logger.info("Database disconnected")

        cls._engine = None
        cls._session_factory = None
        cls.is_initialized = False

    @classmethod
    def reset(cls) -> None:
        """
        Reset all state without disposing the engine.

        Primarily for testing purposes.
        """
        cls._engine = None
        cls._session_factory = None
        cls._pending_models = []
        cls.is_initialized = False

    @classmethod
    async def health_check(cls) -> bool:
        """Check that a trivial query succeeds."""
        if not cls.is_initialized:
            return False
        try:
            async with cls.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Database health check failed: {e}")
            return False

    @classmethod
    def get_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise RuntimeError("Database not initialized. Call init_database() first.")
        return cls._engine

    # ==========================================================================
    # MIGRATIONS
    # ==========================================================================

    @classmethod
    async def auto_migrate(cls, model: Type[Model]) -> bool:
        """
        Migrate a model's table.

        Creates the table when missing and adds any mapped column the
        existing table lacks. Failures are logged, never raised.

        Args:
            model: Mapped model class

        Returns:
            True if the table is now up to date
        """
        engine = cls.get_engine()
        name = model.__name__

        try:
            async with engine.begin() as conn:
                added = await conn.run_sync(_migrate_table, model.__table__)
        except SQLAlchemyError as e:
            logger.error(f"Unable to migrate model {name}")
            logger.error(str(e))
            return False

        if added:
            logger.info(f"Added columns to {model.__tablename__}: {', '.join(added)}")
        logger.info(f"Migrated model of type {name}")
        return True

    @classmethod
    def register_model(cls, model: Type[Model]) -> None:
        """Queue a model for migration by ``migrate_registered``."""
        if model not in cls._pending_models:
            cls._pending_models.append(model)
            logger.debug(f"Queued model {model.__name__} for migration")

    @classmethod
    async def migrate_registered(cls) -> None:
        """Auto-migrate every queued model."""
        for model in list(cls._pending_models):
            await cls.auto_migrate(model)

    # ==========================================================================
    # SESSION MANAGEMENT
    # ==========================================================================

    @classmethod
    @asynccontextmanager
    async def session(cls) -> AsyncIterator[AsyncSession]:
        """
        Provide transactional session scope.

        Commits on successful exit, rolls back on exception.

        Raises:
            RuntimeError: If database not initialized
        """
        if cls._session_factory is None:
            raise RuntimeError("Database not initialized. Call init_database() first.")

        session: AsyncSession = cls._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ==============================================================================
# FASTAPI DEPENDENCIES
# ==============================================================================

async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session for hand-written routes."""
    async with Database.session() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]
