"""Pure snapshot diffing.

A usage that disappears between two snapshots is only reported as deleted when its
scheduled end is still in the future at the reference time. Reservations that
simply ran out are dropped silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from labres.domain.model import UsageCreated, UsageDeleted, UsageUpdated

if TYPE_CHECKING:
    from datetime import datetime

    from labres.domain.model import ChangeEvent, ResourceUsage, Snapshot


def diff_snapshots(
    previous: Snapshot,
    current: Snapshot,
    *,
    now: datetime,
) -> tuple[ChangeEvent, ...]:
    """Return the change events that turn ``previous`` into ``current``.

    Created and updated events follow the order of ``current``; deletions follow the
    order of ``previous`` and come last. The function is deterministic, so running
    it twice on the same inputs yields the same events.
    """

    if previous.collection_id != current.collection_id:
        raise ValueError(
            f"Cannot diff snapshots of {previous.collection_id} and {current.collection_id}"
        )

    events: list[ChangeEvent] = []
    for usage in current:
        before = previous.get(usage.id)
        if before is None:
            events.append(UsageCreated(usage))
        elif not before.has_same_content(usage):
            events.append(UsageUpdated(old=before, new=usage))

    for usage in previous:
        if usage.id in current:
            continue
        if _ended_naturally(usage, now=now):
            continue
        events.append(UsageDeleted(usage))

    return tuple(events)


def _ended_naturally(usage: ResourceUsage, *, now: datetime) -> bool:
    return usage.end <= now


@dataclass(slots=True, frozen=True)
class ReconcileStep:
    """Result of one reconciliation step: the snapshot to keep and what changed."""

    snapshot: Snapshot
    events: tuple[ChangeEvent, ...]
    seeded: bool


def reconcile(previous: Snapshot | None, current: Snapshot, *, now: datetime) -> ReconcileStep:
    """Advance a collection's state by one fetched snapshot.

    Without a previous snapshot the current one only seeds the state, so reservations
    that existed before the watcher started are not announced as new.
    """

    if previous is None:
        return ReconcileStep(snapshot=current, events=(), seeded=True)
    return ReconcileStep(
        snapshot=current,
        events=diff_snapshots(previous, current, now=now),
        seeded=False,
    )


__all__ = ["ReconcileStep", "diff_snapshots", "reconcile"]
