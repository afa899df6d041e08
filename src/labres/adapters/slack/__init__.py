"""Public interface for the Slack adapter."""

from __future__ import annotations

from .client import SlackNotifier, build_message_payload
from .schema import PostMessageResponse

__all__ = ["PostMessageResponse", "SlackNotifier", "build_message_payload"]
