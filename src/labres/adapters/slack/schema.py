"""Pydantic models for the Slack Web API responses we read."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class SlackBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PostMessageResponse(SlackBaseModel):
    ok: bool
    error: str | None = None
    channel: str | None = None
    ts: str | None = None
