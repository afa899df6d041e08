"""Explicit per-collection snapshot state owned by the reconciliation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from labres.domain.model import Snapshot


@dataclass(slots=True)
class SnapshotState:
    """Previous snapshot per collection id. Absent means not seeded yet."""

    _snapshots: dict[str, Snapshot] = field(default_factory=dict)

    def get(self, collection_id: str) -> Snapshot | None:
        return self._snapshots.get(collection_id)

    def is_seeded(self, collection_id: str) -> bool:
        return collection_id in self._snapshots

    def replace(self, snapshot: Snapshot) -> None:
        self._snapshots[snapshot.collection_id] = snapshot

    def collection_ids(self) -> frozenset[str]:
        return frozenset(self._snapshots)
