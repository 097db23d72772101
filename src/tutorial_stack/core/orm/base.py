"""Declarative base and mixins for all tutorial-stack ORM models.

Timestamps are set on the Python side and stored as UTC, so the same model
works on SQLite (development, tests) and PostgreSQL (the orchestrated
deployment) without dialect-specific DDL.
"""

from __future__ import annotations

import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class UTCDateTime(TypeDecorator[datetime.datetime]):
    """Timezone-aware UTC datetimes on every backend.

    SQLite has no timezone storage and returns naive values; they are
    read back as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime.datetime | None, dialect: Dialect) -> Any:
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(datetime.UTC)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime.datetime | None:
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=datetime.UTC)
        return value


class StackBase(DeclarativeBase):
    """Shared declarative base for every tutorial-stack table.

    ``type_annotation_map`` lets ``Mapped[...]`` columns use plain Python
    types and resolve to portable column types.
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Boolean,
        datetime.datetime: UTCDateTime,
    }


class TimestampMixin:
    """Adds ``created_at`` and ``updated_at``, both maintained by SQLAlchemy."""

    created_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
