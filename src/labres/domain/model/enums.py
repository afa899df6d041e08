"""Enumerations used across the domain model."""

from __future__ import annotations

from enum import StrEnum


class CollectionKind(StrEnum):
    SERVER = "server"
    ROOM = "room"


class DestinationType(StrEnum):
    SLACK = "slack"
    MOCK = "mock"


class ResourceStyle(StrEnum):
    FULL = "full"
    COMPACT = "compact"
    SERVER_ONLY = "server_only"


class TimeStyle(StrEnum):
    FULL = "full"
    SMART = "smart"
    RELATIVE = "relative"


class DateFormat(StrEnum):
    YMD = "ymd"
    MD = "md"
    MD_LOCAL = "md_local"


class ChangeKind(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class ReservationStatus(StrEnum):
    DRAFT = "draft"
    VALIDATED = "validated"
    COMMITTED = "committed"
    REJECTED = "rejected"
