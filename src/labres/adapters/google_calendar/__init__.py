"""Public interface for the Google Calendar adapter."""

from __future__ import annotations

from .access import GoogleCalendarAccessControl
from .client import (
    GoogleCalendarAPIError,
    GoogleCalendarClient,
    ServiceAccountTokenProvider,
    TokenProvider,
)
from .repository import GoogleCalendarUsageRepository
from .schema import EventPayload, EventsListResponse
from .translator import build_event_body, parse_event

__all__ = [
    "EventPayload",
    "EventsListResponse",
    "GoogleCalendarAPIError",
    "GoogleCalendarAccessControl",
    "GoogleCalendarClient",
    "GoogleCalendarUsageRepository",
    "ServiceAccountTokenProvider",
    "TokenProvider",
    "build_event_body",
    "parse_event",
]
