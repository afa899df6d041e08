"""Rendering and routing of reservation change notifications."""

from __future__ import annotations

from .formatting import format_date, format_period, format_resources, resolve_timezone
from .router import (
    DeliveryFailed,
    DeliveryResult,
    DeliverySucceeded,
    IdentityDirectory,
    NotificationRouter,
)
from .templates import DEFAULT_TEMPLATES, MessageRenderer, resource_label

__all__ = [
    "DEFAULT_TEMPLATES",
    "DeliveryFailed",
    "DeliveryResult",
    "DeliverySucceeded",
    "IdentityDirectory",
    "MessageRenderer",
    "NotificationRouter",
    "format_date",
    "format_period",
    "format_resources",
    "resolve_timezone",
]
