"""HTTP client for the Google Calendar v3 API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, Unpack
from urllib.parse import quote

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from labres.adapters.http_resilience import RateLimit, ResilienceConfig, ResilientClient

from .schema import AclRule, AclScope, ErrorResponse, EventPayload, EventsListResponse

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime
    from pathlib import Path
    from types import TracebackType

    import httpx

    from labres.adapters.http_resilience import RequestOptions

log = getLogger(__name__)

CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3/"
CALENDAR_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/calendar",)
_PAGE_SIZE = 250


def default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="google_calendar",
        base_url=CALENDAR_BASE_URL,
        timeout_seconds=20.0,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )


class GoogleCalendarAPIError(RuntimeError):
    """Raised when the Calendar API answers with an error status."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TokenProvider(Protocol):
    @property
    def service_account_email(self) -> str | None: ...

    async def token(self) -> str: ...


class ServiceAccountTokenProvider:
    """OAuth access tokens for a service account key file, refreshed on expiry."""

    def __init__(self, key_path: Path, *, scopes: Sequence[str] = CALENDAR_SCOPES) -> None:
        self._credentials = service_account.Credentials.from_service_account_file(
            str(key_path), scopes=list(scopes)
        )
        self._lock = asyncio.Lock()

    @property
    def service_account_email(self) -> str | None:
        return self._credentials.service_account_email

    async def token(self) -> str:
        async with self._lock:
            if not self._credentials.valid:
                log.debug("Refreshing Google service account token")
                # google-auth only ships a blocking transport
                await asyncio.to_thread(self._credentials.refresh, Request())
            return self._credentials.token


def _events_path(calendar_id: str) -> str:
    return f"calendars/{quote(calendar_id, safe='')}/events"


class GoogleCalendarClient:
    def __init__(self, tokens: TokenProvider, *, http: ResilientClient | None = None) -> None:
        self._tokens = tokens
        self._http = http or ResilientClient(default_resilience_config())

    @property
    def service_account_email(self) -> str | None:
        return self._tokens.service_account_email

    async def __aenter__(self) -> GoogleCalendarClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def list_events(
        self,
        calendar_id: str,
        *,
        time_min: datetime,
        time_max: datetime | None = None,
    ) -> list[EventPayload]:
        params: dict[str, str | int] = {
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeMin": time_min.isoformat(),
            "maxResults": _PAGE_SIZE,
        }
        if time_max is not None:
            params["timeMax"] = time_max.isoformat()

        events: list[EventPayload] = []
        while True:
            response = await self._request("GET", _events_path(calendar_id), params=params)
            page = EventsListResponse.model_validate(response.json())
            events.extend(page.items)
            if page.next_page_token is None:
                return events
            params["pageToken"] = page.next_page_token

    async def insert_event(self, calendar_id: str, body: dict[str, object]) -> EventPayload:
        response = await self._request("POST", _events_path(calendar_id), json=body)
        return EventPayload.model_validate(response.json())

    async def patch_event(
        self,
        calendar_id: str,
        event_id: str,
        body: dict[str, object],
    ) -> EventPayload:
        path = f"{_events_path(calendar_id)}/{quote(event_id, safe='')}"
        response = await self._request("PATCH", path, json=body)
        return EventPayload.model_validate(response.json())

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        path = f"{_events_path(calendar_id)}/{quote(event_id, safe='')}"
        await self._request("DELETE", path)

    async def insert_acl_rule(self, calendar_id: str, email: str, *, role: str = "writer") -> None:
        rule = AclRule.model_validate({"role": role, "scope": AclScope(type="user", value=email)})
        path = f"calendars/{quote(calendar_id, safe='')}/acl"
        await self._request("POST", path, json=rule.model_dump(mode="json"))

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        try:
            token = await self._tokens.token()
        except GoogleAuthError as exc:
            log.error("Could not obtain a Google access token: %s", exc)
            raise GoogleCalendarAPIError(f"Google authentication failed: {exc}") from exc
        headers = {"Authorization": f"Bearer {token}"}
        response = await self._http.request(method, path, headers=headers, **kwargs)
        if response.is_success:
            return response

        message = f"{method} {path} failed with HTTP {response.status_code}"
        try:
            error = ErrorResponse.model_validate(response.json())
        except ValueError:
            pass
        else:
            message = f"{message}: {error.error.message}"
        log.error(message)
        raise GoogleCalendarAPIError(message, status_code=response.status_code)
