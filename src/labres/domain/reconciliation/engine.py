"""Async driver for per-collection reconciliation ticks."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from labres.domain.errors import FetchError
from labres.domain.time_windows import FetchWindow, utcnow

from .diff import reconcile
from .state import SnapshotState

if TYPE_CHECKING:
    from collections.abc import Iterable

    from labres.domain.model import ChangeEvent, ResourceCollection, Snapshot
    from labres.domain.ports import ResourceUsageRepository
    from labres.domain.time_windows import Clock

log = getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONCURRENCY = 4


class TickStatus(StrEnum):
    SEEDED = "seeded"
    DIFFED = "diffed"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class TickOutcome:
    collection: ResourceCollection
    status: TickStatus
    events: tuple[ChangeEvent, ...] = ()
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status is not TickStatus.FAILED


@dataclass(slots=True)
class ReconciliationEngine:
    """Fetch, diff and remember snapshots for each collection.

    Ticks for one collection never overlap; ticks for different collections run
    concurrently up to ``max_concurrency``. The stored snapshot is replaced as soon as
    the diff is computed, independently of what happens to the emitted events.
    """

    repository: ResourceUsageRepository
    state: SnapshotState = field(default_factory=SnapshotState)
    window: FetchWindow = field(default_factory=FetchWindow)
    clock: Clock = utcnow
    fetch_timeout: float | None = DEFAULT_FETCH_TIMEOUT_SECONDS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    _locks: dict[str, asyncio.Lock] = field(default_factory=dict, init=False, repr=False)
    _semaphore: asyncio.Semaphore | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

    async def tick(self, collection: ResourceCollection) -> TickOutcome:
        async with self._lock_for(collection.id):
            try:
                current = await self._fetch(collection)
            except FetchError as exc:
                log.warning("Skipping tick for %s: %s", collection.name, exc)
                return TickOutcome(collection, TickStatus.FAILED, error=exc)

            step = reconcile(self.state.get(collection.id), current, now=self.clock())
            self.state.replace(step.snapshot)

        if step.seeded:
            log.info("Seeded %s with %d usage(s)", collection.name, len(current))
            return TickOutcome(collection, TickStatus.SEEDED)
        if step.events:
            log.info("%s: %d change(s) detected", collection.name, len(step.events))
        return TickOutcome(collection, TickStatus.DIFFED, events=step.events)

    async def tick_all(self, collections: Iterable[ResourceCollection]) -> list[TickOutcome]:
        """Tick every collection, isolating failures to the collection that caused them."""

        targets = list(collections)
        results = await asyncio.gather(
            *(self._bounded_tick(collection) for collection in targets),
            return_exceptions=True,
        )

        outcomes: list[TickOutcome] = []
        for collection, result in zip(targets, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                log.error("Unexpected failure while ticking %s", collection.name, exc_info=result)
                outcomes.append(TickOutcome(collection, TickStatus.FAILED, error=result))
            else:
                outcomes.append(result)
        return outcomes

    async def current_snapshot(self, collection: ResourceCollection) -> Snapshot:
        """Return the stored snapshot, or fetch one without seeding when none exists.

        Conflict checks need every future usage, so with a horizon configured the
        stored (bounded) snapshot is skipped and the fetch is left open ended.
        """

        stored = self.state.get(collection.id)
        if stored is not None and self.window.horizon is None:
            return stored
        return await self._fetch(collection, open_ended=True)

    async def _bounded_tick(self, collection: ResourceCollection) -> TickOutcome:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
        async with self._semaphore:
            return await self.tick(collection)

    async def _fetch(self, collection: ResourceCollection, *, open_ended: bool = False) -> Snapshot:
        start, end = self.window.resolve(clock=self.clock)
        if open_ended:
            end = None
        try:
            async with asyncio.timeout(self.fetch_timeout):
                return await self.repository.fetch_snapshot(collection, start=start, end=end)
        except TimeoutError as exc:
            raise FetchError(
                f"Fetching {collection.name} timed out after {self.fetch_timeout}s"
            ) from exc

    def _lock_for(self, collection_id: str) -> asyncio.Lock:
        lock = self._locks.get(collection_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[collection_id] = lock
        return lock
