"""Message templates and placeholder substitution."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from labres.domain.model import ChangeKind

from .formatting import format_period, format_resources

if TYPE_CHECKING:
    from datetime import datetime

    from labres.domain.model import (
        ChangeEvent,
        NotificationDestination,
        ResourceCollection,
        ResourceUsage,
    )

_PLACEHOLDER: Final = re.compile(r"\{(\w+)\}")

_BODY: Final = "👤 {user}\n\n📅 Period\n{time}\n\n{resource_label}\n{resource}{notes}"

DEFAULT_TEMPLATES: Final[dict[ChangeKind, str]] = {
    ChangeKind.CREATED: "🔔 New reservation\n" + _BODY,
    ChangeKind.UPDATED: "🔄 Reservation updated\n" + _BODY,
    ChangeKind.DELETED: "🗑️ Reservation cancelled\n" + _BODY,
}

NOTES_HEADER: Final = "📝 Notes"


def resource_label(usage: ResourceUsage, collection: ResourceCollection) -> str:
    if not collection.has_devices:
        return "🏢 Reserved room"
    if usage.devices:
        return "💻 Reserved GPUs"
    return "📦 Reserved resources"


@dataclass(slots=True, frozen=True)
class MessageRenderer:
    """Render change events for one destination using its templates and format options."""

    destination: NotificationDestination
    collection: ResourceCollection

    def template_for(self, kind: ChangeKind) -> str:
        templates = self.destination.templates
        custom = {
            ChangeKind.CREATED: templates.created,
            ChangeKind.UPDATED: templates.updated,
            ChangeKind.DELETED: templates.deleted,
        }[kind]
        return custom or DEFAULT_TEMPLATES[kind]

    def render(self, event: ChangeEvent, *, user: str, now: datetime | None = None) -> str:
        usage = event.usage
        options = self.destination.format
        resources = format_resources(usage, self.collection, options.resource_style)
        time_text = format_period(
            usage.period,
            timezone=self.destination.timezone,
            style=options.time_style,
            date_format=options.date_format,
            now=now,
        )
        notes = f"\n\n{NOTES_HEADER}\n{usage.notes}" if usage.notes else ""

        values = {
            "user": user,
            "resource": resources,
            "resources": resources,
            "time": time_text,
            "notes": notes,
            "resource_label": resource_label(usage, self.collection),
        }
        # single pass: inserted values are never scanned for placeholders again
        return _PLACEHOLDER.sub(
            lambda match: values.get(match.group(1), match.group(0)),
            self.template_for(event.kind),
        )
