from __future__ import annotations

from datetime import timedelta

import pytest

from labres.domain.model import UsageCreated, UsageDeleted, UsageUpdated
from labres.domain.reconciliation import diff_snapshots, reconcile
from tests.helpers.usages import BASE_TIME, make_usage, snapshot_of


def test_first_snapshot_only_seeds() -> None:
    current = snapshot_of(make_usage("e1"), make_usage("e2", devices=[2]))

    step = reconcile(None, current, now=BASE_TIME)

    assert step.seeded
    assert step.events == ()
    assert step.snapshot is current


def test_new_usage_is_created() -> None:
    previous = snapshot_of(make_usage("e1"))
    added = make_usage("e2", devices=[3])
    current = snapshot_of(make_usage("e1"), added)

    assert diff_snapshots(previous, current, now=BASE_TIME) == (UsageCreated(added),)


def test_changed_devices_emit_single_update() -> None:
    old = make_usage("e1", devices=[0, 1])
    new = make_usage("e1", devices=[0, 1, 2])

    events = diff_snapshots(snapshot_of(old), snapshot_of(new), now=BASE_TIME)

    assert events == (UsageUpdated(old=old, new=new),)


def test_changed_time_range_emits_single_update() -> None:
    old = make_usage("e1")
    new = make_usage("e1", start=BASE_TIME + timedelta(hours=1))

    events = diff_snapshots(snapshot_of(old), snapshot_of(new), now=BASE_TIME)

    assert len(events) == 1
    assert isinstance(events[0], UsageUpdated)
    assert events[0].old is old
    assert events[0].new is new


def test_owner_change_alone_is_not_an_update() -> None:
    old = make_usage("e1", owner="alice@example.com")
    new = make_usage("e1", owner="bob@example.com")

    assert diff_snapshots(snapshot_of(old), snapshot_of(new), now=BASE_TIME) == ()


def test_notes_change_is_an_update() -> None:
    old = make_usage("e1")
    new = make_usage("e1", notes="extended for training run")

    assert diff_snapshots(snapshot_of(old), snapshot_of(new), now=BASE_TIME) == (
        UsageUpdated(old=old, new=new),
    )


def test_naturally_expired_usage_emits_nothing() -> None:
    usage = make_usage("e1", devices=[0, 1], hours=2)
    end = usage.end

    assert diff_snapshots(snapshot_of(usage), snapshot_of(), now=end) == ()
    assert diff_snapshots(snapshot_of(usage), snapshot_of(), now=end + timedelta(minutes=5)) == ()


def test_usage_removed_before_its_end_is_deleted() -> None:
    usage = make_usage("e1", devices=[0, 1], hours=2)
    now = usage.end - timedelta(seconds=1)

    assert diff_snapshots(snapshot_of(usage), snapshot_of(), now=now) == (UsageDeleted(usage),)


def test_diff_is_idempotent() -> None:
    previous = snapshot_of(make_usage("e1"), make_usage("e2", devices=[2]), make_usage("e3"))
    current = snapshot_of(
        make_usage("e1", devices=[3]),
        make_usage("e4", devices=[1]),
    )

    first = diff_snapshots(previous, current, now=BASE_TIME)
    second = diff_snapshots(previous, current, now=BASE_TIME)

    assert first == second
    assert [event.kind for event in first] == ["updated", "created", "deleted", "deleted"]


def test_unchanged_snapshots_emit_nothing() -> None:
    snapshot = snapshot_of(make_usage("e1"), make_usage("e2", devices=[2]))

    assert diff_snapshots(snapshot, snapshot_of(*snapshot), now=BASE_TIME) == ()


def test_diff_refuses_mixed_collections() -> None:
    with pytest.raises(ValueError, match="Cannot diff"):
        diff_snapshots(snapshot_of(), snapshot_of(collection_id="Freccia"), now=BASE_TIME)
