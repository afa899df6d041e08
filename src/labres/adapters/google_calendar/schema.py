"""Pydantic models describing the Google Calendar v3 payloads we use."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CalendarBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class EventDateTime(CalendarBaseModel):
    date_time: datetime | None = Field(default=None, alias="dateTime")
    date: str | None = None
    time_zone: str | None = Field(default=None, alias="timeZone")


class EventPerson(CalendarBaseModel):
    email: str | None = None
    display_name: str | None = Field(default=None, alias="displayName")


class EventPayload(CalendarBaseModel):
    id: str
    status: Literal["confirmed", "tentative", "cancelled"] = "confirmed"
    summary: str | None = None
    description: str | None = None
    creator: EventPerson | None = None
    organizer: EventPerson | None = None
    start: EventDateTime | None = None
    end: EventDateTime | None = None

    @property
    def is_all_day(self) -> bool:
        return bool(
            self.start is not None and self.start.date_time is None and self.start.date is not None
        )


class EventsListResponse(CalendarBaseModel):
    items: list[EventPayload] = Field(default_factory=list)
    next_page_token: str | None = Field(default=None, alias="nextPageToken")


class AclScope(CalendarBaseModel):
    type: Literal["default", "user", "group", "domain"] = "user"
    value: str


class AclRule(CalendarBaseModel):
    role: Literal["freeBusyReader", "reader", "writer", "owner"] = "writer"
    scope: AclScope


class ErrorDetail(CalendarBaseModel):
    code: int
    message: str


class ErrorResponse(CalendarBaseModel):
    error: ErrorDetail
