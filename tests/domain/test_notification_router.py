from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from labres.domain.errors import DeliveryError
from labres.domain.identity import IdentityLinkStore
from labres.domain.model import DestinationType, ResourceCatalog, UsageCreated, UsageDeleted
from labres.domain.notifications import DeliveryFailed, DeliverySucceeded, NotificationRouter
from labres.adapters.memory import InMemoryKeyValueStore, LoggingNotifier
from tests.helpers.doubles import FlakyNotifier
from tests.helpers.usages import BASE_TIME, make_clock, make_server, make_usage, mock_destination


def _slack(channel: str):  # type: ignore[no-untyped-def]
    return mock_destination(type=DestinationType.SLACK, channel_id=channel)


def _router(notifier: object, **kwargs: object) -> NotificationRouter:
    return NotificationRouter(
        notifiers={DestinationType.SLACK: notifier},  # type: ignore[dict-item]
        collections=ResourceCatalog.of([make_server()]),
        clock=make_clock(BASE_TIME),
        **kwargs,  # type: ignore[arg-type]
    )


def test_failure_on_one_destination_does_not_stop_the_next() -> None:
    notifier = FlakyNotifier(failing_channels={"C-broken"})
    router = _router(notifier)
    destinations = [_slack("C-broken"), _slack("C-ok")]

    results = asyncio.run(router.route(UsageCreated(make_usage()), destinations))

    assert notifier.attempts == ["C-broken", "C-ok"]
    assert isinstance(results[0], DeliveryFailed)
    assert isinstance(results[0].error, DeliveryError)
    assert results[0].destination.channel_id == "C-broken"
    assert isinstance(results[1], DeliverySucceeded)
    assert [result.ok for result in results] == [False, True]


def test_missing_notifier_is_reported_as_failure() -> None:
    router = _router(FlakyNotifier())
    destinations = [mock_destination(), _slack("C-ok")]

    results = asyncio.run(router.route(UsageCreated(make_usage()), destinations))

    assert isinstance(results[0], DeliveryFailed)
    assert "No notifier configured" in str(results[0].error)
    assert isinstance(results[1], DeliverySucceeded)


def test_linked_owner_is_mentioned() -> None:
    identities = IdentityLinkStore(InMemoryKeyValueStore(), clock=make_clock(BASE_TIME))
    identities.link("U123", "Alice@Example.com")
    notifier = FlakyNotifier()
    router = _router(notifier, identities=identities)

    asyncio.run(router.route(UsageCreated(make_usage(owner="alice@example.com")), [_slack("C1")]))

    assert "<@U123>" in notifier.delivered[0].text
    assert "alice@example.com" not in notifier.delivered[0].text


def test_unlinked_owner_is_shown_as_plain_text() -> None:
    identities = IdentityLinkStore(InMemoryKeyValueStore())
    notifier = FlakyNotifier()
    router = _router(notifier, identities=identities)

    asyncio.run(router.route(UsageDeleted(make_usage(owner="carol@example.com")), [_slack("C1")]))

    assert "👤 carol@example.com" in notifier.delivered[0].text


class _BrokenDirectory:
    def find_by_email(self, email: str) -> None:
        raise OSError("identity store unavailable")


def test_identity_lookup_failure_falls_back_to_plain_text() -> None:
    notifier = FlakyNotifier()
    router = _router(notifier, identities=_BrokenDirectory())

    results = asyncio.run(router.route(UsageCreated(make_usage()), [_slack("C1")]))

    assert results[0].ok
    assert "👤 alice@example.com" in notifier.delivered[0].text


def test_destinations_render_in_their_own_timezone() -> None:
    notifier = FlakyNotifier()
    router = _router(notifier)
    usage = make_usage(start=datetime(2024, 1, 15, 10, tzinfo=UTC))
    destinations = [
        mock_destination(type=DestinationType.SLACK, channel_id="tokyo", timezone="Asia/Tokyo"),
        mock_destination(type=DestinationType.SLACK, channel_id="utc", timezone="UTC"),
    ]

    asyncio.run(router.route(UsageCreated(usage), destinations))

    assert "19:00 - 2024-01-15 21:00 (Asia/Tokyo)" in notifier.delivered[0].text
    assert "10:00 - 2024-01-15 12:00 (UTC)" in notifier.delivered[1].text


def test_rendered_message_carries_usage_reference() -> None:
    notifier = LoggingNotifier()
    router = NotificationRouter(
        notifiers={DestinationType.MOCK: notifier},
        collections=ResourceCatalog.of([make_server()]),
    )

    asyncio.run(router.route(UsageCreated(make_usage("e42")), [mock_destination()]))

    message, destination = notifier.sent[0]
    assert message.usage_id == "e42"
    assert message.collection_id == "Thalys"
    assert destination.type is DestinationType.MOCK


def test_unconfigured_collection_still_renders() -> None:
    notifier = FlakyNotifier()
    router = _router(notifier)

    results = asyncio.run(
        router.route(UsageCreated(make_usage(collection_id="Unknown")), [_slack("C1")])
    )

    assert results[0].ok
