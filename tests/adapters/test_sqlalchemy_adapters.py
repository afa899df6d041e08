from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import timedelta

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from labres.adapters.sqlalchemy import (
    SqlAlchemyKeyValueStore,
    SqlAlchemyUsageRepository,
    StartupError,
    shutdown,
)
from labres.domain.errors import RepositoryError
from labres.domain.identity import IdentityLinkStore
from labres.domain.model import TimePeriod, UsageDraft
from tests.helpers.usages import BASE_TIME, make_room, make_server, make_usage


def _draft(hours_from_base: float = 1, devices: frozenset[int] = frozenset({0, 2, 3})) -> UsageDraft:
    start = BASE_TIME + timedelta(hours=hours_from_base)
    return UsageDraft(
        collection_id="Thalys",
        period=TimePeriod(start=start, end=start + timedelta(hours=2)),
        title="0,2-3",
        owner="alice@example.com",
        devices=devices,
        notes="fine-tuning",
    )


def test_repository_requires_startup() -> None:
    shutdown()

    with pytest.raises(StartupError):
        SqlAlchemyUsageRepository()


def test_created_usage_round_trips(started_adapter: Engine) -> None:
    _ = started_adapter
    repository = SqlAlchemyUsageRepository()
    server = make_server()

    created = asyncio.run(repository.create(server, _draft()))
    snapshot = asyncio.run(repository.fetch_snapshot(server, start=BASE_TIME))

    stored = snapshot.get(created.id)
    assert stored == created
    assert stored is not None
    assert stored.start.tzinfo is not None
    assert stored.devices == frozenset({0, 2, 3})


def test_fetch_respects_window_and_collection(sqlite_engine: Engine) -> None:
    repository = SqlAlchemyUsageRepository(sqlite_engine)
    server = make_server()
    room = make_room()
    asyncio.run(repository.create(server, _draft(hours_from_base=-3)))
    current = asyncio.run(repository.create(server, _draft(hours_from_base=1)))
    far = asyncio.run(repository.create(server, _draft(hours_from_base=48)))

    open_ended = asyncio.run(repository.fetch_snapshot(server, start=BASE_TIME))
    bounded = asyncio.run(
        repository.fetch_snapshot(server, start=BASE_TIME, end=BASE_TIME + timedelta(days=1))
    )
    rooms = asyncio.run(repository.fetch_snapshot(room, start=BASE_TIME))

    assert [usage.id for usage in open_ended] == [current.id, far.id]
    assert [usage.id for usage in bounded] == [current.id]
    assert len(rooms) == 0


def test_update_and_delete(sqlite_engine: Engine) -> None:
    repository = SqlAlchemyUsageRepository(sqlite_engine)
    server = make_server()
    created = asyncio.run(repository.create(server, _draft()))

    changed = replace(created, notes=None, devices=frozenset({1}))
    asyncio.run(repository.update(server, changed))
    snapshot = asyncio.run(repository.fetch_snapshot(server, start=BASE_TIME))
    assert snapshot.get(created.id) == changed

    asyncio.run(repository.delete(server, changed))
    assert len(asyncio.run(repository.fetch_snapshot(server, start=BASE_TIME))) == 0


def test_writes_to_missing_usage_raise(sqlite_engine: Engine) -> None:
    repository = SqlAlchemyUsageRepository(sqlite_engine)
    ghost = make_usage("ghost")

    with pytest.raises(RepositoryError):
        asyncio.run(repository.update(make_server(), ghost))
    with pytest.raises(RepositoryError):
        asyncio.run(repository.delete(make_server(), ghost))


def test_room_usage_without_devices(sqlite_engine: Engine) -> None:
    repository = SqlAlchemyUsageRepository(sqlite_engine)
    room = make_room()
    draft = UsageDraft(
        collection_id=room.id,
        period=TimePeriod(start=BASE_TIME, end=BASE_TIME + timedelta(hours=1)),
        title=room.name,
        owner="bob@example.com",
    )

    created = asyncio.run(repository.create(room, draft))
    snapshot = asyncio.run(repository.fetch_snapshot(room, start=BASE_TIME))

    assert snapshot.get(created.id) == created


def test_key_value_store_upserts_and_isolates_namespaces(sqlite_engine: Engine) -> None:
    links = SqlAlchemyKeyValueStore(sqlite_engine)
    other = SqlAlchemyKeyValueStore(sqlite_engine, namespace="other")

    links.upsert("U1", {"email": "a@x.com"})
    links.upsert("U1", {"email": "b@x.com"})
    other.upsert("U1", {"email": "c@x.com"})

    assert links.get("U1") == {"email": "b@x.com"}
    assert links.list() == {"U1": {"email": "b@x.com"}}
    assert other.get("U1") == {"email": "c@x.com"}
    assert links.get("U2") is None


def test_identity_links_persist_in_database(started_adapter: Engine) -> None:
    IdentityLinkStore(SqlAlchemyKeyValueStore()).link("U1", "alice@example.com")

    reopened = IdentityLinkStore(SqlAlchemyKeyValueStore(started_adapter))
    link = reopened.find_by_email("ALICE@example.com")

    assert link is not None
    assert link.chat_user_id == "U1"
