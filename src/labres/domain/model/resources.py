"""Configured resource collections and their notification destinations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from labres.domain.errors import UnknownCollectionError

from .enums import CollectionKind, DateFormat, DestinationType, ResourceStyle, TimeStyle

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


@dataclass(slots=True, frozen=True)
class Device:
    id: int
    model: str


@dataclass(slots=True, frozen=True)
class MessageTemplates:
    created: str | None = None
    updated: str | None = None
    deleted: str | None = None


@dataclass(slots=True, frozen=True)
class FormatOptions:
    resource_style: ResourceStyle = ResourceStyle.FULL
    time_style: TimeStyle = TimeStyle.FULL
    date_format: DateFormat = DateFormat.YMD


@dataclass(slots=True, frozen=True)
class NotificationDestination:
    """Where and how change notifications for a collection are delivered.

    ``timezone`` is an IANA name; ``None`` renders times in the host's local zone.
    """

    type: DestinationType
    channel_id: str | None = None
    timezone: str | None = None
    templates: MessageTemplates = field(default_factory=MessageTemplates)
    format: FormatOptions = field(default_factory=FormatOptions)

    def describe(self) -> str:
        if self.channel_id:
            return f"{self.type}:{self.channel_id}"
        return str(self.type)


@dataclass(slots=True, frozen=True)
class ResourceCollection:
    """A shared resource (GPU server or room) with its own reservation schedule."""

    name: str
    source_id: str
    kind: CollectionKind = CollectionKind.SERVER
    devices: tuple[Device, ...] = ()
    notifications: tuple[NotificationDestination, ...] = ()
    grant_access: bool = True

    @property
    def id(self) -> str:
        return self.name

    @property
    def has_devices(self) -> bool:
        return self.kind is CollectionKind.SERVER

    @property
    def device_ids(self) -> frozenset[int]:
        return frozenset(device.id for device in self.devices)

    def device(self, device_id: int) -> Device | None:
        for device in self.devices:
            if device.id == device_id:
                return device
        return None


@dataclass(slots=True, frozen=True)
class ResourceCatalog:
    """Ordered, name-addressable set of configured collections."""

    collections: tuple[ResourceCollection, ...] = ()

    @classmethod
    def of(cls, collections: Iterable[ResourceCollection]) -> ResourceCatalog:
        return cls(collections=tuple(collections))

    def __iter__(self) -> Iterator[ResourceCollection]:
        return iter(self.collections)

    def __len__(self) -> int:
        return len(self.collections)

    def get(self, name: str) -> ResourceCollection | None:
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None

    def require(self, name: str) -> ResourceCollection:
        collection = self.get(name)
        if collection is None:
            raise UnknownCollectionError(name)
        return collection
