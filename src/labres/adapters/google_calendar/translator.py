"""Translate between calendar events and domain usages."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from labres.domain.device_spec import extract_device_spec, parse_device_spec
from labres.domain.errors import DeviceSpecError, ValidationError
from labres.domain.model import ResourceUsage, TimePeriod

from .schema import EventPayload

if TYPE_CHECKING:
    from labres.domain.model import ResourceCollection, UsageDraft

log = getLogger(__name__)

OWNER_PREFIX: Final[str] = "Reserved by: "


def _split_description(description: str | None) -> tuple[str | None, str | None]:
    """Return ``(owner, notes)`` from a description written by :func:`build_event_body`."""

    if not description:
        return None, None
    first_line, _, _ = description.partition("\n")
    if not first_line.startswith(OWNER_PREFIX):
        return None, description.strip() or None
    owner = first_line.removeprefix(OWNER_PREFIX).strip() or None
    _, sep, notes = description.partition("\n\n")
    return owner, (notes.strip() or None) if sep else None


def parse_event(
    payload: EventPayload | dict[str, object],
    collection: ResourceCollection,
    *,
    service_account_email: str | None = None,
) -> ResourceUsage | None:
    """Build a usage from an event, or ``None`` when the event cannot represent one.

    Cancelled, all-day and ownerless events are skipped. For events created by the
    service account the real owner is read from the description.
    """

    event = payload if isinstance(payload, EventPayload) else EventPayload.model_validate(payload)
    if event.status == "cancelled" or event.is_all_day:
        return None
    if event.start is None or event.end is None:
        return None
    if event.start.date_time is None or event.end.date_time is None:
        return None

    described_owner, notes = _split_description(event.description)
    creator = event.creator.email if event.creator is not None else None
    owner = creator
    if described_owner is not None and (
        creator is None or creator.casefold() == (service_account_email or "").casefold()
    ):
        owner = described_owner
    if owner is None:
        log.warning("Skipping event %s on %s: no owner", event.id, collection.name)
        return None

    try:
        period = TimePeriod(start=event.start.date_time, end=event.end.date_time)
    except ValidationError as exc:
        log.warning("Skipping event %s on %s: %s", event.id, collection.name, exc)
        return None

    title = (event.summary or "").strip()
    return ResourceUsage(
        id=event.id,
        collection_id=collection.id,
        period=period,
        title=title,
        owner=owner,
        devices=_parse_devices(title, collection, event_id=event.id),
        notes=notes,
    )


def _parse_devices(title: str, collection: ResourceCollection, *, event_id: str) -> frozenset[int]:
    if not collection.has_devices:
        return frozenset()
    spec = extract_device_spec(title)
    if not spec:
        return frozenset()
    try:
        return parse_device_spec(spec)
    except DeviceSpecError as exc:
        log.warning("Event %s on %s has an unreadable title: %s", event_id, collection.name, exc)
        return frozenset()


def build_event_body(usage: ResourceUsage | UsageDraft) -> dict[str, object]:
    description = f"{OWNER_PREFIX}{usage.owner}"
    if usage.notes:
        description += f"\n\n{usage.notes}"
    return {
        "summary": usage.title,
        "description": description,
        "start": {"dateTime": usage.period.start.isoformat()},
        "end": {"dateTime": usage.period.end.isoformat()},
    }
