"""SQLAlchemy persistence adapters."""

from __future__ import annotations

from .repositories import (
    IDENTITY_LINKS_NAMESPACE,
    SqlAlchemyKeyValueStore,
    SqlAlchemyUsageRepository,
)
from .startup import StartupError, configured_engine, is_started, shutdown, startup
from .tables import UTCDateTime, kv_entries_table, metadata, usages_table

__all__ = [
    "IDENTITY_LINKS_NAMESPACE",
    "SqlAlchemyKeyValueStore",
    "SqlAlchemyUsageRepository",
    "StartupError",
    "UTCDateTime",
    "configured_engine",
    "is_started",
    "kv_entries_table",
    "metadata",
    "shutdown",
    "startup",
    "usages_table",
]
