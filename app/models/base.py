"""
Base configurations and mixins for database models.

Provides the declarative base, a timezone-safe datetime column type, and the
UUID primary key and timestamp mixins shared by users and todos. Column types
are the dialect-neutral SQLAlchemy ones so the same models run on PostgreSQL
(asyncpg) and SQLite (aiosqlite).
"""

import uuid

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql.functions import now as db_now
from sqlalchemy.types import TypeDecorator

from app.utils.clock import ensure_utc, utc_now


class TZDateTime(TypeDecorator):
    """
    Timezone-aware datetime column.

    Values are stored in UTC and always come back timezone-aware, including on
    SQLite which drops the offset.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return ensure_utc(value)

    def process_result_value(self, value, dialect):
        return ensure_utc(value)


Base = declarative_base()


class TimestampMixin:
    """
    created_at / updated_at columns.

    Filled in Python (so the values are known before the row is read back)
    with a database default as fallback for raw inserts.
    """

    created_at = Column(
        TZDateTime(),
        default=utc_now,
        server_default=db_now(),
        nullable=False,
        comment="Timestamp when the record was created",
    )
    updated_at = Column(
        TZDateTime(),
        default=utc_now,
        server_default=db_now(),
        onupdate=utc_now,
        nullable=False,
        comment="Timestamp when the record was last updated",
    )


class UUIDMixin:
    """UUID4 primary key."""

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        index=True,
        comment="Primary key using UUID4 format",
    )


__all__ = ["Base", "TimestampMixin", "UUIDMixin", "TZDateTime"]
