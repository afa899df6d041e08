"""Slack configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_var


@dataclass(frozen=True)
class SlackConfig:
    bot_token: str


def get_slack_config() -> SlackConfig:
    return SlackConfig(bot_token=require_env_var("SLACK_BOT_TOKEN"))
