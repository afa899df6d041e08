from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from labres.adapters.slack import SlackNotifier
from labres.adapters.slack.client import build_message_payload, default_resilience_config
from labres.domain.errors import DeliveryError
from labres.domain.model import DestinationType
from labres.domain.ports import RenderedMessage
from tests.helpers.http import Handler, mock_http
from tests.helpers.usages import mock_destination

MESSAGE = RenderedMessage(text="🔔 New reservation", collection_id="Thalys", usage_id="e1")
CHANNEL = mock_destination(type=DestinationType.SLACK, channel_id="C123")


def _notifier(handler: Handler) -> SlackNotifier:
    return SlackNotifier("xoxb-token", http=mock_http(handler, default_resilience_config("xoxb-token")))


def test_posts_message_with_bot_token() -> None:
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"ok": True, "channel": "C123", "ts": "1700000000.1"})

    asyncio.run(_notifier(handler).send(MESSAGE, CHANNEL))

    request = captured[0]
    assert request.url == "https://slack.com/api/chat.postMessage"
    assert request.headers["Authorization"] == "Bearer xoxb-token"
    assert json.loads(request.content) == build_message_payload(MESSAGE, "C123")


def test_payload_carries_text_and_section_block() -> None:
    payload = build_message_payload(MESSAGE, "C123")

    assert payload["channel"] == "C123"
    assert payload["text"] == MESSAGE.text
    assert payload["blocks"] == [
        {"type": "section", "text": {"type": "mrkdwn", "text": MESSAGE.text}}
    ]
    assert payload["unfurl_links"] is False


def test_slack_level_error_is_delivery_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "error": "channel_not_found"})

    with pytest.raises(DeliveryError, match="channel_not_found") as exc:
        asyncio.run(_notifier(handler).send(MESSAGE, CHANNEL))

    assert exc.value.destination == CHANNEL


def test_http_error_is_delivery_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="oops")

    with pytest.raises(DeliveryError, match="C123"):
        asyncio.run(_notifier(handler).send(MESSAGE, CHANNEL))


def test_transport_failure_is_delivery_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DeliveryError):
        asyncio.run(_notifier(handler).send(MESSAGE, CHANNEL))


def test_missing_channel_is_rejected_before_any_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"ok": True})

    with pytest.raises(DeliveryError, match="channel_id"):
        asyncio.run(_notifier(handler).send(MESSAGE, mock_destination(type=DestinationType.SLACK)))

    assert calls == []
