from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from labres.domain.time_windows import FetchWindow, ensure_aware
from tests.helpers.usages import BASE_TIME, make_clock


def test_default_window_starts_now_and_is_open_ended() -> None:
    assert FetchWindow().resolve(clock=make_clock(BASE_TIME)) == (BASE_TIME, None)


def test_lookback_and_horizon_are_applied() -> None:
    window = FetchWindow(lookback=timedelta(minutes=30), horizon=timedelta(days=7))

    start, end = window.resolve(clock=make_clock(BASE_TIME))

    assert start == BASE_TIME - timedelta(minutes=30)
    assert end == BASE_TIME + timedelta(days=7)


def test_resolve_normalizes_to_utc() -> None:
    tokyo = timezone(timedelta(hours=9))
    clock = make_clock(datetime(2024, 1, 15, 19, tzinfo=tokyo))

    start, _ = FetchWindow().resolve(clock=clock)

    assert start == BASE_TIME
    assert start.tzinfo is UTC


def test_naive_clock_is_rejected() -> None:
    with pytest.raises(ValueError, match="timezone"):
        ensure_aware(datetime(2024, 1, 15, 10))  # noqa: DTZ001


@pytest.mark.parametrize(
    "kwargs",
    [{"lookback": timedelta(seconds=-1)}, {"horizon": timedelta(0)}],
)
def test_invalid_window_bounds(kwargs: dict[str, timedelta]) -> None:
    with pytest.raises(ValueError):
        FetchWindow(**kwargs)  # type: ignore[arg-type]
