"""Google Calendar configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import require_env_var
from .errors import ConfigurationError


@dataclass(frozen=True)
class GoogleCalendarConfig:
    service_account_key: Path


def get_google_calendar_config() -> GoogleCalendarConfig:
    key_path = Path(require_env_var("GOOGLE_SERVICE_ACCOUNT_KEY")).expanduser()
    if not key_path.is_file():
        raise ConfigurationError(f"Service account key not found: {key_path}")
    return GoogleCalendarConfig(service_account_key=key_path)
