"""Slack notifier posting messages with ``chat.postMessage``."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from labres.adapters.http_resilience import RateLimit, ResilienceConfig, ResilientClient
from labres.domain.errors import DeliveryError

from .schema import PostMessageResponse

if TYPE_CHECKING:
    from types import TracebackType

    from labres.domain.model import NotificationDestination
    from labres.domain.ports import RenderedMessage

log = getLogger(__name__)

SLACK_BASE_URL = "https://slack.com/api/"


def default_resilience_config(token: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="slack",
        base_url=SLACK_BASE_URL,
        timeout_seconds=10.0,
        ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
        default_headers={"Authorization": f"Bearer {token}"},
    )


def build_message_payload(message: RenderedMessage, channel_id: str) -> dict[str, object]:
    return {
        "channel": channel_id,
        "text": message.text,
        "blocks": [
            {
                "type": "section",
                "text": {"type": "mrkdwn", "text": message.text},
            }
        ],
        "unfurl_links": False,
    }


class SlackNotifier:
    def __init__(self, token: str, *, http: ResilientClient | None = None) -> None:
        self._http = http or ResilientClient(default_resilience_config(token))

    async def __aenter__(self) -> SlackNotifier:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def send(self, message: RenderedMessage, destination: NotificationDestination) -> None:
        if not destination.channel_id:
            raise DeliveryError("Slack destination has no channel_id", destination=destination)

        try:
            response = await self._http.post(
                "chat.postMessage",
                json=build_message_payload(message, destination.channel_id),
            )
            response.raise_for_status()
            result = PostMessageResponse.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            raise DeliveryError(
                f"Slack request to {destination.channel_id} failed: {exc}",
                destination=destination,
            ) from exc

        if not result.ok:
            raise DeliveryError(
                f"Slack rejected message for {destination.channel_id}: {result.error}",
                destination=destination,
            )
        log.debug(f"Posted {message.usage_id} to {destination.channel_id} at {result.ts}")
