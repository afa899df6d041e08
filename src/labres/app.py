"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass, field, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from labres.adapters.memory import (
    InMemoryKeyValueStore,
    InMemoryUsageRepository,
    LoggingNotifier,
    RecordingAccessControl,
)
from labres.config import (
    get_google_calendar_config,
    get_slack_config,
    get_watcher_config,
    load_resource_config,
)
from labres.domain.access_grant import AccessGrantService
from labres.domain.errors import ValidationError
from labres.domain.identity import IdentityLinkStore
from labres.domain.model import DestinationType
from labres.domain.notifications import NotificationRouter
from labres.domain.reconciliation import ReconciliationEngine
from labres.domain.reservations import ReservationService
from labres.domain.time_windows import FetchWindow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping

    from labres.config import WatcherConfig
    from labres.domain.access_grant import GrantSummary
    from labres.domain.model import ResourceCatalog, ResourceUsage
    from labres.domain.ports import AccessControl, Notifier, ResourceUsageRepository
    from labres.domain.reconciliation import TickOutcome
    from labres.domain.reservations import Reservation, ReservationChanges, ReservationRequest

log = getLogger(__name__)


class RepositoryKind(StrEnum):
    GOOGLE_CALENDAR = "google_calendar"
    SQLITE = "sqlite"
    MOCK = "mock"


@dataclass(slots=True)
class Runtime:
    """Adapters selected for one process, plus the services built on top of them."""

    catalog: ResourceCatalog
    repository: ResourceUsageRepository
    access_control: AccessControl
    identities: IdentityLinkStore
    notifiers: Mapping[DestinationType, Notifier]
    watcher_config: WatcherConfig
    engine: ReconciliationEngine = field(init=False)

    def __post_init__(self) -> None:
        self.engine = ReconciliationEngine(
            repository=self.repository,
            window=FetchWindow(
                lookback=self.watcher_config.lookback,
                horizon=self.watcher_config.horizon,
            ),
            fetch_timeout=self.watcher_config.fetch_timeout_seconds,
            max_concurrency=self.watcher_config.max_concurrency,
        )

    def router(self) -> NotificationRouter:
        return NotificationRouter(
            notifiers=self.notifiers,
            collections=self.catalog,
            identities=self.identities,
        )

    def reservations(self) -> ReservationService:
        return ReservationService(
            repository=self.repository,
            snapshots=self.engine,
            collections=self.catalog,
        )

    def access_grants(self) -> AccessGrantService:
        return AccessGrantService(identities=self.identities, access_control=self.access_control)

    def resolve_actor(self, *, chat_user_id: str | None = None, email: str | None = None) -> str:
        """Return the email acting on a reservation, looking chat users up by their link."""

        if email:
            return email
        if chat_user_id:
            link = self.identities.get(chat_user_id)
            if link is None:
                raise ValidationError(f"Chat user {chat_user_id} has not registered an email")
            return link.email
        raise ValidationError("Either a chat user or an owner email is required")


def _uses_slack(catalog: ResourceCatalog) -> bool:
    return any(
        destination.type is DestinationType.SLACK
        for collection in catalog
        for destination in collection.notifications
    )


@contextlib.asynccontextmanager
async def open_runtime(
    repository_kind: RepositoryKind,
    *,
    catalog: ResourceCatalog | None = None,
    interval_seconds: float | None = None,
) -> AsyncIterator[Runtime]:
    """Load configuration and open the adapters for ``repository_kind``.

    Configuration problems surface here as ``ConfigurationError`` before anything runs.
    """

    resolved_catalog = catalog or load_resource_config()
    watcher_config = get_watcher_config(interval_seconds=interval_seconds)

    async with contextlib.AsyncExitStack() as stack:
        notifiers: dict[DestinationType, Notifier] = {DestinationType.MOCK: LoggingNotifier()}
        if _uses_slack(resolved_catalog):
            from labres.adapters.slack import SlackNotifier  # noqa: PLC0415

            slack = await stack.enter_async_context(SlackNotifier(get_slack_config().bot_token))
            notifiers[DestinationType.SLACK] = slack

        repository: ResourceUsageRepository
        access_control: AccessControl
        if repository_kind is RepositoryKind.MOCK:
            repository = InMemoryUsageRepository()
            access_control = RecordingAccessControl()
            identities = IdentityLinkStore(InMemoryKeyValueStore())
        else:
            from labres.adapters.sqlalchemy import (  # noqa: PLC0415
                SqlAlchemyKeyValueStore,
                SqlAlchemyUsageRepository,
                is_started,
                startup,
            )

            if not is_started():
                startup()
            identities = IdentityLinkStore(SqlAlchemyKeyValueStore())
            if repository_kind is RepositoryKind.SQLITE:
                repository = SqlAlchemyUsageRepository()
                access_control = RecordingAccessControl()
            else:
                from labres.adapters.google_calendar import (  # noqa: PLC0415
                    GoogleCalendarAccessControl,
                    GoogleCalendarClient,
                    GoogleCalendarUsageRepository,
                    ServiceAccountTokenProvider,
                )

                google_config = get_google_calendar_config()
                client = await stack.enter_async_context(
                    GoogleCalendarClient(
                        ServiceAccountTokenProvider(google_config.service_account_key)
                    )
                )
                repository = GoogleCalendarUsageRepository(client)
                access_control = GoogleCalendarAccessControl(client)

        log.info(
            f"Runtime ready: repository={repository_kind}, collections={len(resolved_catalog)}, "
            f"destinations={sorted(notifiers)}"
        )
        yield Runtime(
            catalog=resolved_catalog,
            repository=repository,
            access_control=access_control,
            identities=identities,
            notifiers=notifiers,
            watcher_config=watcher_config,
        )


@dataclass(slots=True)
class Watcher:
    """Periodic driver: tick every collection, then route what changed."""

    engine: ReconciliationEngine
    router: NotificationRouter
    collections: ResourceCatalog
    interval: float = 60.0

    async def run_once(self) -> list[TickOutcome]:
        outcomes = await self.engine.tick_all(self.collections)
        for outcome in outcomes:
            for event in outcome.events:
                results = await self.router.route(event, outcome.collection.notifications)
                failed = sum(1 for result in results if not result.ok)
                if failed:
                    log.warning(
                        "%s %s on %s: %d/%d deliveries failed",
                        event.kind,
                        event.usage.id,
                        outcome.collection.name,
                        failed,
                        len(results),
                    )
        return outcomes

    async def run(self, stop: asyncio.Event) -> None:
        """Tick until ``stop`` is set. A tick in progress always finishes first."""

        log.info(f"Watching {len(self.collections)} collection(s) every {self.interval}s")
        while not stop.is_set():
            await self.run_once()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=self.interval)
        log.info("Watcher stopped")


async def watch(
    *,
    repository_kind: RepositoryKind = RepositoryKind.GOOGLE_CALENDAR,
    interval_seconds: float | None = None,
    stop: asyncio.Event | None = None,
    catalog: ResourceCatalog | None = None,
) -> None:
    stop_event = stop or asyncio.Event()
    async with open_runtime(
        repository_kind, catalog=catalog, interval_seconds=interval_seconds
    ) as runtime:
        watcher = Watcher(
            engine=runtime.engine,
            router=runtime.router(),
            collections=runtime.catalog,
            interval=runtime.watcher_config.interval_seconds,
        )
        await watcher.run(stop_event)


async def register_user(
    *,
    chat_user_id: str,
    email: str,
    repository_kind: RepositoryKind = RepositoryKind.GOOGLE_CALENDAR,
) -> GrantSummary:
    """Link ``chat_user_id`` to ``email`` and share every collection calendar with it."""

    async with open_runtime(repository_kind) as runtime:
        return await runtime.access_grants().grant_access(email, chat_user_id, runtime.catalog)


async def reserve(
    request: ReservationRequest,
    *,
    chat_user_id: str | None = None,
    repository_kind: RepositoryKind = RepositoryKind.GOOGLE_CALENDAR,
) -> Reservation:
    """Create a reservation; ``chat_user_id`` replaces the owner with the user's linked email."""

    async with open_runtime(repository_kind) as runtime:
        if chat_user_id is not None:
            request = replace(request, owner=runtime.resolve_actor(chat_user_id=chat_user_id))
        return await runtime.reservations().create(request)


async def update_reservation(
    *,
    collection: str,
    usage_id: str,
    changes: ReservationChanges,
    actor: str | None = None,
    chat_user_id: str | None = None,
    repository_kind: RepositoryKind = RepositoryKind.GOOGLE_CALENDAR,
) -> Reservation:
    async with open_runtime(repository_kind) as runtime:
        email = runtime.resolve_actor(chat_user_id=chat_user_id, email=actor)
        return await runtime.reservations().update(collection, usage_id, changes, actor=email)


async def cancel_reservation(
    *,
    collection: str,
    usage_id: str,
    actor: str | None = None,
    chat_user_id: str | None = None,
    repository_kind: RepositoryKind = RepositoryKind.GOOGLE_CALENDAR,
) -> Reservation:
    async with open_runtime(repository_kind) as runtime:
        email = runtime.resolve_actor(chat_user_id=chat_user_id, email=actor)
        return await runtime.reservations().cancel(collection, usage_id, actor=email)


async def list_reservations(
    *,
    collection: str,
    owner: str | None = None,
    chat_user_id: str | None = None,
    repository_kind: RepositoryKind = RepositoryKind.GOOGLE_CALENDAR,
) -> list[ResourceUsage]:
    """Upcoming usages on ``collection``; every owner's when neither filter is given."""

    async with open_runtime(repository_kind) as runtime:
        email = (
            runtime.resolve_actor(chat_user_id=chat_user_id, email=owner)
            if owner or chat_user_id
            else None
        )
        return await runtime.reservations().list_upcoming(collection, owner=email)
