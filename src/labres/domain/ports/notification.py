"""Ports for delivering rendered notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from labres.domain.model import NotificationDestination


@dataclass(slots=True, frozen=True)
class RenderedMessage:
    """Message text ready for a transport; ``text`` may contain chat markup."""

    text: str
    collection_id: str
    usage_id: str


@runtime_checkable
class Notifier(Protocol):
    """Delivers messages to one kind of destination, raising ``DeliveryError`` on failure."""

    async def send(self, message: RenderedMessage, destination: NotificationDestination) -> None: ...


__all__ = ["Notifier", "RenderedMessage"]
