"""Reservation commands: validate, check conflicts, then write to the repository.

Commands never notify anyone directly. The reconciliation engine picks the change
up on its next tick like any other edit made in the backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from .device_spec import format_device_spec, is_all_devices, parse_device_spec
from .errors import (
    ConflictError,
    LabresError,
    UnauthorizedError,
    UsageNotFoundError,
    ValidationError,
)
from .model import ReservationStatus, ResourceUsage, TimePeriod, UsageDraft
from .time_windows import utcnow

if TYPE_CHECKING:
    from datetime import datetime

    from .model import ResourceCatalog, ResourceCollection, Snapshot
    from .ports import ResourceUsageRepository, SnapshotSource
    from .time_windows import Clock

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ReservationRequest:
    collection: str
    start: datetime
    end: datetime
    owner: str
    devices: str | None = None
    notes: str | None = None


@dataclass(slots=True, frozen=True)
class ReservationChanges:
    """Fields to change on an existing usage; ``None`` keeps the current value.

    An empty ``notes`` string clears the notes.
    """

    start: datetime | None = None
    end: datetime | None = None
    devices: str | None = None
    notes: str | None = None


@dataclass(slots=True)
class Reservation:
    """Progress of one command through draft, validated and committed (or rejected)."""

    collection_name: str
    status: ReservationStatus = ReservationStatus.DRAFT
    devices: frozenset[int] = frozenset()
    usage: ResourceUsage | None = None
    error: LabresError | None = None
    history: list[ReservationStatus] = field(default_factory=lambda: [ReservationStatus.DRAFT])

    @property
    def committed(self) -> bool:
        return self.status is ReservationStatus.COMMITTED

    def advance(self, status: ReservationStatus) -> None:
        allowed = _TRANSITIONS[self.status]
        if status not in allowed:
            raise RuntimeError(f"Illegal reservation transition {self.status} -> {status}")
        self.status = status
        self.history.append(status)

    def reject(self, error: LabresError) -> None:
        self.advance(ReservationStatus.REJECTED)
        self.error = error

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error


_TRANSITIONS: dict[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.DRAFT: frozenset({ReservationStatus.VALIDATED, ReservationStatus.REJECTED}),
    ReservationStatus.VALIDATED: frozenset(
        {ReservationStatus.COMMITTED, ReservationStatus.REJECTED}
    ),
    ReservationStatus.COMMITTED: frozenset(),
    ReservationStatus.REJECTED: frozenset(),
}


def resolve_devices(collection: ResourceCollection, spec: str | None) -> frozenset[int]:
    """Turn a device spec into indices that exist on ``collection``.

    ``all`` selects every configured device. Rooms take no device spec.
    """

    has_spec = spec is not None and bool(spec.strip())
    if not collection.has_devices:
        if has_spec:
            raise ValidationError(f"{collection.name} is a room and takes no device specification")
        return frozenset()
    if spec is None or not has_spec:
        raise ValidationError(f"A device specification is required for {collection.name}")

    devices = collection.device_ids if is_all_devices(spec) else parse_device_spec(spec)
    unknown = devices - collection.device_ids
    if unknown:
        raise ValidationError(
            f"Unknown device(s) on {collection.name}: {format_device_spec(unknown)}"
        )
    return devices


def find_conflict(
    candidate: ResourceUsage,
    snapshot: Snapshot,
    collection: ResourceCollection,
) -> ResourceUsage | None:
    for existing in snapshot:
        if existing.id == candidate.id:
            continue
        if candidate.conflicts_with(existing, device_scoped=collection.has_devices):
            return existing
    return None


def _usage_title(collection: ResourceCollection, devices: frozenset[int]) -> str:
    return format_device_spec(devices) if collection.has_devices else collection.name


def _same_person(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


@dataclass(slots=True)
class ReservationService:
    repository: ResourceUsageRepository
    snapshots: SnapshotSource
    collections: ResourceCatalog
    clock: Clock = utcnow

    async def create(self, request: ReservationRequest) -> Reservation:
        reservation = Reservation(collection_name=request.collection)
        try:
            collection = self.collections.require(request.collection)
            period = TimePeriod(start=request.start, end=request.end)
            if period.start < self.clock():
                raise ValidationError("Reservations cannot start in the past")  # noqa: TRY301
            reservation.devices = resolve_devices(collection, request.devices)
            draft = UsageDraft(
                collection_id=collection.id,
                period=period,
                title=_usage_title(collection, reservation.devices),
                owner=request.owner,
                devices=reservation.devices,
                notes=request.notes or None,
            )
            await self._check_conflicts(collection, draft.assign_id(""))
            reservation.advance(ReservationStatus.VALIDATED)
            reservation.usage = await self.repository.create(collection, draft)
        except LabresError as exc:
            return self._rejected(reservation, exc)

        reservation.advance(ReservationStatus.COMMITTED)
        log.info(f"Created reservation {reservation.usage.id} on {collection.name}")
        return reservation

    async def update(
        self,
        collection_name: str,
        usage_id: str,
        changes: ReservationChanges,
        *,
        actor: str,
    ) -> Reservation:
        reservation = Reservation(collection_name=collection_name)
        try:
            collection = self.collections.require(collection_name)
            snapshot = await self.snapshots.current_snapshot(collection)
            existing = self._owned_usage(snapshot, usage_id, actor=actor)

            period = TimePeriod(
                start=changes.start or existing.start,
                end=changes.end or existing.end,
            )
            if period.start != existing.start and period.start < self.clock():
                raise ValidationError("Reservations cannot be moved into the past")  # noqa: TRY301
            if changes.devices is not None:
                reservation.devices = resolve_devices(collection, changes.devices)
            else:
                reservation.devices = existing.devices
            notes = existing.notes if changes.notes is None else (changes.notes or None)

            updated = replace(
                existing,
                period=period,
                devices=reservation.devices,
                title=_usage_title(collection, reservation.devices)
                if changes.devices is not None
                else existing.title,
                notes=notes,
            )
            self._ensure_free(collection, updated, snapshot)
            reservation.advance(ReservationStatus.VALIDATED)
            reservation.usage = await self.repository.update(collection, updated)
        except LabresError as exc:
            return self._rejected(reservation, exc)

        reservation.advance(ReservationStatus.COMMITTED)
        log.info(f"Updated reservation {usage_id} on {collection.name}")
        return reservation

    async def cancel(self, collection_name: str, usage_id: str, *, actor: str) -> Reservation:
        reservation = Reservation(collection_name=collection_name)
        try:
            collection = self.collections.require(collection_name)
            snapshot = await self.snapshots.current_snapshot(collection)
            existing = self._owned_usage(snapshot, usage_id, actor=actor)
            reservation.devices = existing.devices
            reservation.usage = existing
            reservation.advance(ReservationStatus.VALIDATED)
            await self.repository.delete(collection, existing)
        except LabresError as exc:
            return self._rejected(reservation, exc)

        reservation.advance(ReservationStatus.COMMITTED)
        log.info(f"Cancelled reservation {usage_id} on {collection.name}")
        return reservation

    async def list_upcoming(
        self,
        collection_name: str,
        *,
        owner: str | None = None,
    ) -> list[ResourceUsage]:
        """Usages on ``collection_name`` that have not ended, ordered by start.

        With ``owner`` set only that person's usages are returned.
        """

        collection = self.collections.require(collection_name)
        snapshot = await self.snapshots.current_snapshot(collection)
        now = self.clock()
        usages = [
            usage
            for usage in snapshot
            if usage.end > now and (owner is None or _same_person(usage.owner, owner))
        ]
        return sorted(usages, key=lambda usage: (usage.start, usage.id))

    async def _check_conflicts(self, collection: ResourceCollection, candidate: ResourceUsage) -> None:
        snapshot = await self.snapshots.current_snapshot(collection)
        self._ensure_free(collection, candidate, snapshot)

    @staticmethod
    def _ensure_free(
        collection: ResourceCollection,
        candidate: ResourceUsage,
        snapshot: Snapshot,
    ) -> None:
        conflicting = find_conflict(candidate, snapshot, collection)
        if conflicting is not None:
            raise ConflictError(conflicting)

    @staticmethod
    def _owned_usage(snapshot: Snapshot, usage_id: str, *, actor: str) -> ResourceUsage:
        existing = snapshot.get(usage_id)
        if existing is None:
            raise UsageNotFoundError(snapshot.collection_id, usage_id)
        if not _same_person(existing.owner, actor):
            raise UnauthorizedError(f"{actor} does not own reservation {usage_id}")
        return existing

    @staticmethod
    def _rejected(reservation: Reservation, error: LabresError) -> Reservation:
        reservation.reject(error)
        log.info(f"Rejected reservation on {reservation.collection_name}: {error}")
        return reservation


__all__ = [
    "Reservation",
    "ReservationChanges",
    "ReservationRequest",
    "ReservationService",
    "find_conflict",
    "resolve_devices",
]
