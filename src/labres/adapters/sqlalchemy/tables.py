"""SQLAlchemy Core table definitions for locally stored usages and key/value entries."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Index,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
)

metadata = MetaData()


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Refusing to store a naive datetime")
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        # SQLite drops the offset; everything is stored as UTC
        return value if value.tzinfo else value.replace(tzinfo=UTC)


usages_table = Table(
    "resource_usages",
    metadata,
    Column("collection_id", String(255), primary_key=True),
    Column("id", String(64), primary_key=True),
    Column("start_at", UTCDateTime(), nullable=False),
    Column("end_at", UTCDateTime(), nullable=False),
    Column("title", String(255), nullable=False),
    Column("owner", String(320), nullable=False),
    Column("devices", String(255), nullable=False, default=""),
    Column("notes", Text, nullable=True),
    Index("ix_resource_usages_end", "collection_id", "end_at"),
)

kv_entries_table = Table(
    "kv_entries",
    metadata,
    Column("namespace", String(64), primary_key=True),
    Column("key", String(255), primary_key=True),
    Column("value", Text, nullable=False),
)
