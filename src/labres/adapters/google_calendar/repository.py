"""Reservation repository backed by one Google calendar per collection."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from labres.domain.errors import FetchError, RepositoryError
from labres.domain.model import Snapshot

from .client import GoogleCalendarAPIError
from .translator import build_event_body, parse_event

if TYPE_CHECKING:
    from datetime import datetime

    from labres.domain.model import ResourceCollection, ResourceUsage, UsageDraft

    from .client import GoogleCalendarClient

log = getLogger(__name__)

_API_ERRORS = (GoogleCalendarAPIError, httpx.HTTPError, ValueError)


class GoogleCalendarUsageRepository:
    """Events of ``collection.source_id`` become usages; event ids are usage ids."""

    def __init__(self, client: GoogleCalendarClient) -> None:
        self._client = client

    async def fetch_snapshot(
        self,
        collection: ResourceCollection,
        *,
        start: datetime,
        end: datetime | None = None,
    ) -> Snapshot:
        try:
            events = await self._client.list_events(
                collection.source_id, time_min=start, time_max=end
            )
        except _API_ERRORS as exc:
            raise FetchError(f"Could not list events of {collection.name}: {exc}") from exc

        usages: list[ResourceUsage] = []
        for event in events:
            usage = parse_event(
                event,
                collection,
                service_account_email=self._client.service_account_email,
            )
            # the API bounds by end > timeMin already; this guards against clock skew
            if usage is not None and usage.end > start:
                usages.append(usage)
        log.debug("Fetched %d usage(s) from %s", len(usages), collection.name)
        return Snapshot.of(collection.id, usages)

    async def create(self, collection: ResourceCollection, draft: UsageDraft) -> ResourceUsage:
        try:
            event = await self._client.insert_event(collection.source_id, build_event_body(draft))
        except _API_ERRORS as exc:
            raise RepositoryError(f"Could not create event on {collection.name}: {exc}") from exc
        return draft.assign_id(event.id)

    async def update(self, collection: ResourceCollection, usage: ResourceUsage) -> ResourceUsage:
        try:
            await self._client.patch_event(collection.source_id, usage.id, build_event_body(usage))
        except _API_ERRORS as exc:
            raise RepositoryError(f"Could not update event {usage.id}: {exc}") from exc
        return usage

    async def delete(self, collection: ResourceCollection, usage: ResourceUsage) -> None:
        try:
            await self._client.delete_event(collection.source_id, usage.id)
        except GoogleCalendarAPIError as exc:
            if exc.status_code == httpx.codes.GONE:
                log.info(f"Event {usage.id} on {collection.name} was already deleted")
                return
            raise RepositoryError(f"Could not delete event {usage.id}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RepositoryError(f"Could not delete event {usage.id}: {exc}") from exc
