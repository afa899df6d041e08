"""Retry and rate-limit settings for the upstream HTTP APIs (Calendar, Slack)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from httpx_retries import Retry

if TYPE_CHECKING:
    from collections.abc import Mapping

_TRANSIENT_ERRORS: tuple[type[httpx.HTTPError], ...] = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Transport-level retries with exponential backoff.

    POST is not in ``idempotent_methods``: inserting an event or an ACL rule twice
    creates duplicates, so those requests fail fast and surface to the caller.
    """

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    idempotent_methods: frozenset[str] = frozenset({"DELETE", "GET", "HEAD", "PATCH", "PUT"})
    retry_statuses: frozenset[int] = frozenset({429, 500, 502, 503, 504})

    @classmethod
    def disabled(cls) -> RetryPolicy:
        return cls(total=0)

    def build(self) -> Retry:
        return Retry(
            total=self.total,
            backoff_factor=self.backoff_factor,
            max_backoff_wait=self.max_backoff_wait,
            respect_retry_after_header=True,
            allowed_methods=sorted(self.idempotent_methods),
            status_forcelist=sorted(self.retry_statuses),
            retry_on_exceptions=_TRANSIENT_ERRORS,
            backoff_jitter=1.0,
        )


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
