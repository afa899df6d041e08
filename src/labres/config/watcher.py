"""Polling loop configuration."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .env import env_float
from .errors import ConfigurationError

DEFAULT_POLLING_INTERVAL_SECONDS = 60.0
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_CONCURRENCY = 4


@dataclass(frozen=True, slots=True)
class WatcherConfig:
    interval_seconds: float = DEFAULT_POLLING_INTERVAL_SECONDS
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    lookback: timedelta = timedelta(0)
    horizon: timedelta | None = None


def get_watcher_config(*, interval_seconds: float | None = None) -> WatcherConfig:
    """Build the watcher config from the environment; an explicit interval wins."""

    interval = (
        interval_seconds
        if interval_seconds is not None
        else env_float("POLLING_INTERVAL", DEFAULT_POLLING_INTERVAL_SECONDS)
    )
    if interval <= 0:
        raise ConfigurationError(f"Polling interval must be positive, got {interval}")

    # A reservation moved past the horizon drops out of the next fetch and is reported
    # as cancelled; leave LABRES_HORIZON_DAYS unset unless calendars are very large.
    horizon_days = env_float("LABRES_HORIZON_DAYS", 0.0, minimum=0.0)
    return WatcherConfig(
        interval_seconds=interval,
        fetch_timeout_seconds=env_float(
            "LABRES_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT_SECONDS, minimum=1.0
        ),
        max_concurrency=int(env_float("LABRES_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY, minimum=1)),
        lookback=timedelta(minutes=env_float("LABRES_LOOKBACK_MINUTES", 0.0, minimum=0.0)),
        horizon=timedelta(days=horizon_days) if horizon_days else None,
    )
