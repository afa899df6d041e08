"""Factories for usages, snapshots and collections used across the test suite."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from labres.domain.model import (
    CollectionKind,
    DestinationType,
    Device,
    FormatOptions,
    NotificationDestination,
    ResourceCollection,
    ResourceUsage,
    Snapshot,
    TimePeriod,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from labres.domain.time_windows import Clock

BASE_TIME = datetime(2024, 1, 15, 10, tzinfo=UTC)


def make_clock(reference: datetime) -> Clock:
    def _clock() -> datetime:
        return reference

    return _clock


class MutableClock:
    def __init__(self, now: datetime = BASE_TIME) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


def mock_destination(**overrides: object) -> NotificationDestination:
    values: dict[str, object] = {
        "type": DestinationType.MOCK,
        "timezone": "Asia/Tokyo",
        "format": FormatOptions(),
    }
    values.update(overrides)
    return NotificationDestination(**values)  # type: ignore[arg-type]


def make_server(
    name: str = "Thalys",
    *,
    device_count: int = 4,
    model: str = "A100",
    notifications: Iterable[NotificationDestination] | None = None,
    grant_access: bool = True,
) -> ResourceCollection:
    return ResourceCollection(
        name=name,
        source_id=f"{name.lower()}@group.calendar.google.com",
        kind=CollectionKind.SERVER,
        devices=tuple(Device(id=index, model=model) for index in range(device_count)),
        notifications=tuple(notifications) if notifications is not None else (mock_destination(),),
        grant_access=grant_access,
    )


def make_room(
    name: str = "Meeting Room A",
    *,
    grant_access: bool = True,
) -> ResourceCollection:
    return ResourceCollection(
        name=name,
        source_id="room-a@group.calendar.google.com",
        kind=CollectionKind.ROOM,
        notifications=(mock_destination(),),
        grant_access=grant_access,
    )


def make_usage(
    usage_id: str = "e1",
    *,
    collection_id: str = "Thalys",
    start: datetime = BASE_TIME,
    hours: float = 2,
    devices: Iterable[int] = (0, 1),
    owner: str = "alice@example.com",
    title: str | None = None,
    notes: str | None = None,
) -> ResourceUsage:
    device_set = frozenset(devices)
    return ResourceUsage(
        id=usage_id,
        collection_id=collection_id,
        period=TimePeriod(start=start, end=start + timedelta(hours=hours)),
        title=title if title is not None else ",".join(str(d) for d in sorted(device_set)),
        owner=owner,
        devices=device_set,
        notes=notes,
    )


def snapshot_of(*usages: ResourceUsage, collection_id: str = "Thalys") -> Snapshot:
    return Snapshot.of(collection_id, usages)
