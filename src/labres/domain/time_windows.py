"""Utilities for resolving the fetch window of a reconciliation tick."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Datetime values must include timezone information")
    return value.astimezone(UTC)


@dataclass(slots=True, frozen=True)
class FetchWindow:
    """Describe which usages a tick asks the repository for, relative to ``now``.

    ``lookback`` widens the window into the past; ``horizon`` bounds it in the future
    (``None`` leaves it open ended).
    """

    lookback: timedelta = timedelta(0)
    horizon: timedelta | None = None

    def __post_init__(self) -> None:
        if self.lookback < timedelta(0):
            raise ValueError("Lookback duration must be non-negative")
        if self.horizon is not None and self.horizon <= timedelta(0):
            raise ValueError("Horizon duration must be positive")

    def resolve(self, *, clock: Clock = utcnow) -> tuple[datetime, datetime | None]:
        """Resolve the window into concrete UTC timestamps."""

        anchor = ensure_aware(clock())
        start = anchor - self.lookback
        end = anchor + self.horizon if self.horizon is not None else None
        return start, end


__all__ = ["Clock", "FetchWindow", "ensure_aware", "utcnow"]
