"""Domain model for lab resource reservations."""

from __future__ import annotations

from .enums import (
    ChangeKind,
    CollectionKind,
    DateFormat,
    DestinationType,
    ReservationStatus,
    ResourceStyle,
    TimeStyle,
)
from .identity import IdentityLink
from .resources import (
    Device,
    FormatOptions,
    MessageTemplates,
    NotificationDestination,
    ResourceCatalog,
    ResourceCollection,
)
from .usage import (
    ChangeEvent,
    ResourceUsage,
    Snapshot,
    TimePeriod,
    UsageCreated,
    UsageDeleted,
    UsageDraft,
    UsageUpdated,
)

__all__ = [
    "ChangeEvent",
    "ChangeKind",
    "CollectionKind",
    "DateFormat",
    "DestinationType",
    "Device",
    "FormatOptions",
    "IdentityLink",
    "MessageTemplates",
    "NotificationDestination",
    "ReservationStatus",
    "ResourceCatalog",
    "ResourceCollection",
    "ResourceStyle",
    "ResourceUsage",
    "Snapshot",
    "TimePeriod",
    "TimeStyle",
    "UsageCreated",
    "UsageDeleted",
    "UsageDraft",
    "UsageUpdated",
]
