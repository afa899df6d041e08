"""Fan-out of change events to the destinations configured for a collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from labres.domain.errors import DeliveryError
from labres.domain.model import ResourceCatalog, ResourceCollection
from labres.domain.ports import RenderedMessage
from labres.domain.time_windows import utcnow

from .templates import MessageRenderer

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from labres.domain.model import (
        ChangeEvent,
        DestinationType,
        IdentityLink,
        NotificationDestination,
    )
    from labres.domain.ports import Notifier
    from labres.domain.time_windows import Clock

log = getLogger(__name__)


class IdentityDirectory(Protocol):
    def find_by_email(self, email: str) -> IdentityLink | None: ...


@dataclass(slots=True, frozen=True)
class DeliverySucceeded:
    destination: NotificationDestination
    message: RenderedMessage

    @property
    def ok(self) -> bool:
        return True


@dataclass(slots=True, frozen=True)
class DeliveryFailed:
    destination: NotificationDestination
    error: Exception

    @property
    def ok(self) -> bool:
        return False


type DeliveryResult = DeliverySucceeded | DeliveryFailed


@dataclass(slots=True)
class NotificationRouter:
    """Render and send change events, one independent attempt per destination.

    Delivery is best effort: failures are returned as ``DeliveryFailed`` results and
    are never retried.
    """

    notifiers: Mapping[DestinationType, Notifier]
    collections: ResourceCatalog = field(default_factory=ResourceCatalog)
    identities: IdentityDirectory | None = None
    clock: Clock = utcnow

    async def route(
        self,
        event: ChangeEvent,
        destinations: Iterable[NotificationDestination],
    ) -> list[DeliveryResult]:
        collection = self._collection_for(event.collection_id)
        user = self.display_owner(event.usage.owner)
        now = self.clock()

        results: list[DeliveryResult] = []
        for destination in destinations:
            try:
                message = RenderedMessage(
                    text=MessageRenderer(destination, collection).render(event, user=user, now=now),
                    collection_id=event.collection_id,
                    usage_id=event.usage.id,
                )
                notifier = self.notifiers.get(destination.type)
                if notifier is None:
                    raise DeliveryError(  # noqa: TRY301
                        f"No notifier configured for {destination.type}",
                        destination=destination,
                    )
                await notifier.send(message, destination)
            except Exception as exc:  # noqa: BLE001
                log.warning(
                    "Delivery of %s %s to %s failed: %s",
                    event.kind,
                    event.usage.id,
                    destination.describe(),
                    exc,
                )
                results.append(DeliveryFailed(destination, exc))
            else:
                results.append(DeliverySucceeded(destination, message))
        return results

    def display_owner(self, owner: str) -> str:
        """Mention the owner when their email is linked, otherwise show it verbatim."""

        if self.identities is None:
            return owner
        try:
            link = self.identities.find_by_email(owner)
        except Exception as exc:  # noqa: BLE001
            log.warning("Identity lookup for %s failed, using plain text: %s", owner, exc)
            return owner
        return link.mention() if link is not None else owner

    def _collection_for(self, collection_id: str) -> ResourceCollection:
        collection = self.collections.get(collection_id)
        if collection is not None:
            return collection
        log.warning("Routing event for unconfigured collection %s", collection_id)
        return ResourceCollection(name=collection_id, source_id=collection_id)
