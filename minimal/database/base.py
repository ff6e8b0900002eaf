# ==============================================================================
# BASE MODEL - SQLAlchemy Foundation
# ==============================================================================
# Declarative base for every resource data type
# ==============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Model(DeclarativeBase):
    """
    Base class for all resource models.

    Provides a common foundation with:
    - Integer autoincrement primary key (the ``id`` routes address)
    - Creation and update timestamps
    - Dictionary serialization method

    Example:
        >>> class Todo(Model):
        ...     __tablename__ = "todos"
        ...     title: Mapped[str] = mapped_column(String(255))
    """

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.

        Returns:
            Dictionary with all column values
        """
        return {
            column.key: getattr(self, column.key)
            for column in self.__mapper__.column_attrs
        }

    def __repr__(self) -> str:
        """Generate readable representation."""
        class_name = self.__class__.__name__
        return f"<{class_name}(id={self.id})>"
