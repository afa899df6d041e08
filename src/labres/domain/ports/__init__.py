"""Domain port definitions for adapters."""

from __future__ import annotations

from .access import AccessControl
from .notification import Notifier, RenderedMessage
from .persistence import KeyValueStore
from .repository import ResourceUsageRepository, SnapshotSource

__all__ = [
    "AccessControl",
    "KeyValueStore",
    "Notifier",
    "RenderedMessage",
    "ResourceUsageRepository",
    "SnapshotSource",
]
