"""In-process adapters used by the ``mock`` repository selection and by tests."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from labres.domain.errors import RepositoryError
from labres.domain.model import Snapshot

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from labres.domain.model import (
        NotificationDestination,
        ResourceCollection,
        ResourceUsage,
        UsageDraft,
    )
    from labres.domain.ports import RenderedMessage

log = getLogger(__name__)


@dataclass(slots=True)
class InMemoryUsageRepository:
    """Usages kept in a dict per collection id, in insertion order."""

    _usages: dict[str, dict[str, ResourceUsage]] = field(default_factory=dict)

    @classmethod
    def with_usages(cls, usages: Iterable[ResourceUsage]) -> InMemoryUsageRepository:
        repository = cls()
        for usage in usages:
            repository._usages.setdefault(usage.collection_id, {})[usage.id] = usage
        return repository

    async def fetch_snapshot(
        self,
        collection: ResourceCollection,
        *,
        start: datetime,
        end: datetime | None = None,
    ) -> Snapshot:
        visible = [
            usage
            for usage in self._usages.get(collection.id, {}).values()
            if usage.end > start and (end is None or usage.start < end)
        ]
        return Snapshot.of(collection.id, visible)

    async def create(self, collection: ResourceCollection, draft: UsageDraft) -> ResourceUsage:
        usage = draft.assign_id(uuid.uuid4().hex)
        self._usages.setdefault(collection.id, {})[usage.id] = usage
        return usage

    async def update(self, collection: ResourceCollection, usage: ResourceUsage) -> ResourceUsage:
        existing = self._usages.get(collection.id, {})
        if usage.id not in existing:
            raise RepositoryError(f"Usage {usage.id} does not exist in {collection.name}")
        existing[usage.id] = usage
        return usage

    async def delete(self, collection: ResourceCollection, usage: ResourceUsage) -> None:
        existing = self._usages.get(collection.id, {})
        if existing.pop(usage.id, None) is None:
            raise RepositoryError(f"Usage {usage.id} does not exist in {collection.name}")

    def put(self, usage: ResourceUsage) -> None:
        self._usages.setdefault(usage.collection_id, {})[usage.id] = usage

    def remove(self, collection_id: str, usage_id: str) -> None:
        self._usages.get(collection_id, {}).pop(usage_id, None)

    def move(self, collection_id: str, usage_id: str, **changes: object) -> ResourceUsage:
        usage = replace(self._usages[collection_id][usage_id], **changes)  # type: ignore[arg-type]
        self._usages[collection_id][usage_id] = usage
        return usage


@dataclass(slots=True)
class LoggingNotifier:
    """Notifier for ``mock`` destinations: writes the message to the log."""

    sent: list[tuple[RenderedMessage, NotificationDestination]] = field(default_factory=list)

    async def send(self, message: RenderedMessage, destination: NotificationDestination) -> None:
        self.sent.append((message, destination))
        log.info(f"[{destination.describe()}] {message.text}")


@dataclass(slots=True)
class RecordingAccessControl:
    """Access control that only remembers which grants were requested."""

    grants: list[tuple[str, str]] = field(default_factory=list)

    async def grant(self, email: str, source_id: str) -> None:
        self.grants.append((email, source_id))
        log.info(f"Granted {email} access to {source_id} (mock)")


@dataclass(slots=True)
class InMemoryKeyValueStore:
    _entries: dict[str, dict[str, str]] = field(default_factory=dict)

    def get(self, key: str) -> Mapping[str, str] | None:
        entry = self._entries.get(key)
        return dict(entry) if entry is not None else None

    def upsert(self, key: str, value: Mapping[str, str]) -> None:
        self._entries[key] = dict(value)

    def list(self) -> dict[str, Mapping[str, str]]:
        return {key: dict(value) for key, value in self._entries.items()}
