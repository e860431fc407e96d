"""
SQLAlchemy declarative base and common model mixins.

Column types are chosen to run on PostgreSQL (asyncpg) in production and on
SQLite in local and test runs: ``Uuid`` for identifiers and ``JSON`` with a
``JSONB`` variant for embedded documents.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite hands back naive values for ``DateTime(timezone=True)`` columns;
    everything the application writes is UTC.
    """
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models with async support.
    """

    __abstract__ = True

    def to_dict(self, exclude: Optional[set[str]] = None) -> Dict[str, Any]:
        """
        Convert the mapped columns of this instance to a dictionary.

        Args:
            exclude: Column names to leave out

        Returns:
            Dictionary with datetimes as ISO strings and UUIDs as strings
        """
        exclude = exclude or set()
        result: Dict[str, Any] = {}

        for column in self.__table__.columns:
            if column.key in exclude:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                result[column.key] = ensure_utc(value).isoformat()
            elif isinstance(value, uuid.UUID):
                result[column.key] = str(value)
            else:
                result[column.key] = value

        return result

    def __repr__(self) -> str:
        pk_values = []
        for column in self.__table__.primary_key.columns:
            value = getattr(self, column.key, None)
            if value is not None:
                pk_values.append(f"{column.key}={value!r}")

        pk_str = ", ".join(pk_values) if pk_values else "no primary key"
        return f"<{self.__class__.__name__}({pk_str})>"


class UUIDMixin:
    """Mixin adding a client-generated UUID primary key."""

    @declared_attr
    def id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid,
            primary_key=True,
            default=uuid.uuid4,
        )


class TimestampMixin:
    """
    Mixin for creation and modification timestamps.

    Values are set on the application side so that conditional updates can
    stamp ``updated_at`` explicitly in the same statement.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            default=utcnow,
            index=True,
        )

    @declared_attr
    def updated_at(cls) -> Mapped[Optional[datetime]]:
        return mapped_column(
            DateTime(timezone=True),
            nullable=True,
            default=utcnow,
            onupdate=utcnow,
        )


class BaseModel(Base, UUIDMixin, TimestampMixin):
    """Abstract base for entities with a UUID key and timestamps."""

    __abstract__ = True
