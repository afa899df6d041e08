"""Snapshot reconciliation: detect created, updated and cancelled reservations."""

from __future__ import annotations

from .diff import ReconcileStep, diff_snapshots, reconcile
from .engine import ReconciliationEngine, TickOutcome, TickStatus
from .state import SnapshotState

__all__ = [
    "ReconcileStep",
    "ReconciliationEngine",
    "SnapshotState",
    "TickOutcome",
    "TickStatus",
    "diff_snapshots",
    "reconcile",
]
