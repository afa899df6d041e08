"""Reservation intervals, snapshots and the change events derived from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from labres.domain.errors import ValidationError

from .enums import ChangeKind

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping
    from datetime import datetime, timedelta


@dataclass(slots=True, frozen=True)
class TimePeriod:
    """Half-open interval ``[start, end)`` between two timezone-aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValidationError("Time periods must include timezone information")
        if self.start >= self.end:
            raise ValidationError("Start time must be before end time")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: TimePeriod) -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(slots=True, frozen=True)
class ResourceUsage:
    """One reservation of a collection as reported by the backend.

    ``owner`` is whatever organizer identifier the backend gives us; it is usually
    an email but nothing guarantees it.
    """

    id: str
    collection_id: str
    period: TimePeriod
    title: str
    owner: str
    devices: frozenset[int] = frozenset()
    notes: str | None = None

    @property
    def start(self) -> datetime:
        return self.period.start

    @property
    def end(self) -> datetime:
        return self.period.end

    def has_same_content(self, other: ResourceUsage) -> bool:
        return (
            self.period == other.period
            and self.devices == other.devices
            and self.title == other.title
            and self.notes == other.notes
        )

    def conflicts_with(self, other: ResourceUsage, *, device_scoped: bool) -> bool:
        if not self.period.overlaps(other.period):
            return False
        if not device_scoped:
            return True
        return not self.devices.isdisjoint(other.devices)


@dataclass(slots=True, frozen=True)
class UsageDraft:
    """A reservation that has not been assigned an id by the backend yet."""

    collection_id: str
    period: TimePeriod
    title: str
    owner: str
    devices: frozenset[int] = frozenset()
    notes: str | None = None

    def assign_id(self, usage_id: str) -> ResourceUsage:
        return ResourceUsage(
            id=usage_id,
            collection_id=self.collection_id,
            period=self.period,
            title=self.title,
            owner=self.owner,
            devices=self.devices,
            notes=self.notes,
        )


@dataclass(slots=True, frozen=True, eq=False)
class Snapshot:
    """Immutable view of one collection's usages captured during a single tick."""

    collection_id: str
    usages: Mapping[str, ResourceUsage] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def of(cls, collection_id: str, usages: Iterable[ResourceUsage]) -> Snapshot:
        by_id: dict[str, ResourceUsage] = {}
        for usage in usages:
            if usage.collection_id != collection_id:
                raise ValueError(
                    f"Usage {usage.id} belongs to {usage.collection_id}, not {collection_id}"
                )
            by_id[usage.id] = usage
        return cls(collection_id=collection_id, usages=MappingProxyType(by_id))

    def __len__(self) -> int:
        return len(self.usages)

    def __contains__(self, usage_id: object) -> bool:
        return usage_id in self.usages

    def __iter__(self) -> Iterator[ResourceUsage]:
        return iter(self.usages.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self.collection_id == other.collection_id and dict(self.usages) == dict(
            other.usages
        )

    def get(self, usage_id: str) -> ResourceUsage | None:
        return self.usages.get(usage_id)


@dataclass(slots=True, frozen=True)
class UsageCreated:
    usage: ResourceUsage
    kind: ChangeKind = field(default=ChangeKind.CREATED, init=False)

    @property
    def collection_id(self) -> str:
        return self.usage.collection_id


@dataclass(slots=True, frozen=True)
class UsageUpdated:
    old: ResourceUsage
    new: ResourceUsage
    kind: ChangeKind = field(default=ChangeKind.UPDATED, init=False)

    @property
    def usage(self) -> ResourceUsage:
        return self.new

    @property
    def collection_id(self) -> str:
        return self.new.collection_id


@dataclass(slots=True, frozen=True)
class UsageDeleted:
    usage: ResourceUsage
    kind: ChangeKind = field(default=ChangeKind.DELETED, init=False)

    @property
    def collection_id(self) -> str:
        return self.usage.collection_id


type ChangeEvent = UsageCreated | UsageUpdated | UsageDeleted
