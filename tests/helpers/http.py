"""Resilient clients answering from an in-process ``httpx.MockTransport``."""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003
from dataclasses import replace

import httpx

from labres.adapters.http_resilience import ResilienceConfig, ResilientClient, RetryPolicy

type Handler = Callable[[httpx.Request], httpx.Response]


def mock_http(handler: Handler, config: ResilienceConfig) -> ResilientClient:
    """Keep ``config``'s base URL and headers, without rate limiting or retries."""

    unthrottled = replace(config, ratelimit=None, retry=RetryPolicy.disabled())
    return ResilientClient(unthrottled, transport=httpx.MockTransport(handler))


class StaticTokenProvider:
    def __init__(
        self,
        token: str = "test-token",
        email: str | None = "svc@project.iam.gserviceaccount.com",
    ) -> None:
        self._token = token
        self._email = email

    @property
    def service_account_email(self) -> str | None:
        return self._email

    async def token(self) -> str:
        return self._token
