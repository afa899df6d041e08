"""Loading of the resource collection file (TOML)."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Final, Self
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from labres.domain.model import (
    CollectionKind,
    DateFormat,
    DestinationType,
    Device,
    FormatOptions,
    MessageTemplates,
    NotificationDestination,
    ResourceCatalog,
    ResourceCollection,
    ResourceStyle,
    TimeStyle,
)

from .errors import ConfigurationError

DEFAULT_RESOURCE_CONFIG: Final[str] = "config/resources.toml"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class DeviceEntry(_ConfigModel):
    id: int = Field(ge=0)
    model: str = Field(min_length=1)


class TemplatesEntry(_ConfigModel):
    created: str | None = None
    updated: str | None = None
    deleted: str | None = None


class FormatEntry(_ConfigModel):
    resource_style: ResourceStyle = ResourceStyle.FULL
    time_style: TimeStyle = TimeStyle.FULL
    date_format: DateFormat = DateFormat.YMD


class NotificationEntry(_ConfigModel):
    type: DestinationType
    channel_id: str | None = None
    timezone: str | None = None
    templates: TemplatesEntry = Field(default_factory=TemplatesEntry)
    format: FormatEntry = Field(default_factory=FormatEntry)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"unknown timezone {value!r}") from exc
        return value

    @model_validator(mode="after")
    def _addressing(self) -> Self:
        if self.type is DestinationType.SLACK and not self.channel_id:
            raise ValueError("slack notifications require a channel_id")
        return self

    def to_domain(self) -> NotificationDestination:
        return NotificationDestination(
            type=self.type,
            channel_id=self.channel_id,
            timezone=self.timezone,
            templates=MessageTemplates(
                created=self.templates.created,
                updated=self.templates.updated,
                deleted=self.templates.deleted,
            ),
            format=FormatOptions(
                resource_style=self.format.resource_style,
                time_style=self.format.time_style,
                date_format=self.format.date_format,
            ),
        )


class RoomEntry(_ConfigModel):
    name: str = Field(min_length=1)
    calendar_id: str = Field(min_length=1)
    notifications: list[NotificationEntry] = Field(default_factory=list)
    grant_access: bool = True

    def to_domain(self) -> ResourceCollection:
        return ResourceCollection(
            name=self.name,
            source_id=self.calendar_id,
            kind=CollectionKind.ROOM,
            notifications=tuple(entry.to_domain() for entry in self.notifications),
            grant_access=self.grant_access,
        )


class ServerEntry(RoomEntry):
    devices: list[DeviceEntry] = Field(min_length=1)

    @field_validator("devices")
    @classmethod
    def _unique_device_ids(cls, value: list[DeviceEntry]) -> list[DeviceEntry]:
        seen: set[int] = set()
        for device in value:
            if device.id in seen:
                raise ValueError(f"duplicate device id {device.id}")
            seen.add(device.id)
        return value

    def to_domain(self) -> ResourceCollection:
        return ResourceCollection(
            name=self.name,
            source_id=self.calendar_id,
            kind=CollectionKind.SERVER,
            devices=tuple(Device(id=device.id, model=device.model) for device in self.devices),
            notifications=tuple(entry.to_domain() for entry in self.notifications),
            grant_access=self.grant_access,
        )


class ResourceConfigFile(_ConfigModel):
    servers: list[ServerEntry] = Field(default_factory=list)
    rooms: list[RoomEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_names(self) -> Self:
        seen: set[str] = set()
        for entry in [*self.servers, *self.rooms]:
            if entry.name in seen:
                raise ValueError(f"duplicate resource name {entry.name!r}")
            seen.add(entry.name)
        return self

    def to_catalog(self) -> ResourceCatalog:
        return ResourceCatalog.of(
            [*(server.to_domain() for server in self.servers), *(room.to_domain() for room in self.rooms)]
        )


def parse_resource_config(text: str, *, source: str = "<string>") -> ResourceCatalog:
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"{source} is not valid TOML: {exc}") from exc
    try:
        parsed = ResourceConfigFile.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid resource configuration in {source}:\n{exc}") from exc
    catalog = parsed.to_catalog()
    if not len(catalog):
        raise ConfigurationError(f"{source} does not define any servers or rooms")
    return catalog


def get_resource_config_path() -> Path:
    return Path(os.getenv("RESOURCE_CONFIG") or DEFAULT_RESOURCE_CONFIG)


def load_resource_config(path: Path | None = None) -> ResourceCatalog:
    """Read and validate the resource file, raising ``ConfigurationError`` on any problem."""

    resolved = path or get_resource_config_path()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read resource configuration {resolved}: {exc}") from exc
    return parse_resource_config(text, source=str(resolved))
