"""Ports for reading and writing reservations in the backing store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from datetime import datetime

    from labres.domain.model import ResourceCollection, ResourceUsage, Snapshot, UsageDraft


@runtime_checkable
class ResourceUsageRepository(Protocol):
    """Reservation backend for one or more resource collections.

    ``fetch_snapshot`` raises ``FetchError`` when the backend cannot be read; the write
    operations raise ``RepositoryError``.
    """

    async def fetch_snapshot(
        self,
        collection: ResourceCollection,
        *,
        start: datetime,
        end: datetime | None = None,
    ) -> Snapshot: ...

    async def create(self, collection: ResourceCollection, draft: UsageDraft) -> ResourceUsage: ...

    async def update(self, collection: ResourceCollection, usage: ResourceUsage) -> ResourceUsage: ...

    async def delete(self, collection: ResourceCollection, usage: ResourceUsage) -> None: ...


@runtime_checkable
class SnapshotSource(Protocol):
    """Read access to the most recent view of a collection, used for conflict checks."""

    async def current_snapshot(self, collection: ResourceCollection) -> Snapshot: ...


__all__ = ["ResourceUsageRepository", "SnapshotSource"]
