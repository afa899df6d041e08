"""Rendering of resources and reservation periods for human readers."""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import TYPE_CHECKING, Final
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from labres.domain.model import DateFormat, ResourceStyle, TimeStyle

if TYPE_CHECKING:
    from labres.domain.model import ResourceCollection, ResourceUsage, TimePeriod

_RELATIVE_DAY_LABELS: Final[dict[int, str]] = {
    -1: "yesterday",
    0: "today",
    1: "tomorrow",
    2: "day after tomorrow",
}


def resolve_timezone(name: str | None) -> tzinfo | None:
    """Return the IANA zone for ``name``; ``None`` selects the host's local zone."""

    if name is None:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def _localize(value: datetime, zone: tzinfo | None) -> datetime:
    # astimezone() without an argument converts to the host's local zone
    return value.astimezone(zone) if zone is not None else value.astimezone()


def format_date(value: datetime, date_format: DateFormat) -> str:
    match date_format:
        case DateFormat.YMD:
            return value.strftime("%Y-%m-%d")
        case DateFormat.MD:
            return f"{value.month}/{value.day}"
        case DateFormat.MD_LOCAL:
            return f"{value.month}月{value.day}日"


def format_period(
    period: TimePeriod,
    *,
    timezone: str | None = None,
    style: TimeStyle = TimeStyle.FULL,
    date_format: DateFormat = DateFormat.YMD,
    now: datetime | None = None,
) -> str:
    zone = resolve_timezone(timezone)
    start = _localize(period.start, zone)
    end = _localize(period.end, zone)

    match style:
        case TimeStyle.FULL:
            label = timezone if timezone is not None else start.strftime("%:z")
            return f"{start:%Y-%m-%d %H:%M} - {end:%Y-%m-%d %H:%M} ({label})"
        case TimeStyle.SMART:
            return _format_smart(start, end, date_format)
        case TimeStyle.RELATIVE:
            if start.date() != end.date():
                return _format_smart(start, end, date_format)
            reference = _localize(now or datetime.now(start.tzinfo), zone)
            offset = (start.date() - reference.date()).days
            day = _RELATIVE_DAY_LABELS.get(offset) or format_date(start, date_format)
            return f"{day} {start:%H:%M}-{end:%H:%M}"


def _format_smart(start: datetime, end: datetime, date_format: DateFormat) -> str:
    if start.date() == end.date():
        return f"{format_date(start, date_format)} {start:%H:%M}-{end:%H:%M}"
    return (
        f"{format_date(start, date_format)} {start:%H:%M} - "
        f"{format_date(end, date_format)} {end:%H:%M}"
    )


def format_resources(
    usage: ResourceUsage,
    collection: ResourceCollection,
    style: ResourceStyle = ResourceStyle.FULL,
) -> str:
    """Describe what a usage occupies: devices of a server, or the room itself."""

    if not collection.has_devices or not usage.devices:
        return collection.name

    devices = sorted(usage.devices)
    match style:
        case ResourceStyle.FULL:
            lines: list[str] = []
            for device_id in devices:
                device = collection.device(device_id)
                if device is None:
                    lines.append(f"{collection.name} / GPU:{device_id}")
                else:
                    lines.append(f"{collection.name} / {device.model} / GPU:{device_id}")
            return "\n".join(lines)
        case ResourceStyle.COMPACT:
            return f"{collection.name} {','.join(str(device_id) for device_id in devices)}"
        case ResourceStyle.SERVER_ONLY:
            return collection.name


__all__ = [
    "format_date",
    "format_period",
    "format_resources",
    "resolve_timezone",
]
