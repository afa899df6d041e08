"""Application configuration helpers."""

from __future__ import annotations

from .env import env_float, require_env_var, require_env_vars
from .errors import ConfigError, ConfigurationError, MissingConfigurationError
from .google import GoogleCalendarConfig, get_google_calendar_config
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .resources import get_resource_config_path, load_resource_config, parse_resource_config
from .slack import SlackConfig, get_slack_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .watcher import WatcherConfig, get_watcher_config

__all__ = [
    "ConfigError",
    "ConfigurationError",
    "DatabaseConfig",
    "GoogleCalendarConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SlackConfig",
    "StorageConfig",
    "WatcherConfig",
    "configure_logging",
    "env_float",
    "get_database_config",
    "get_google_calendar_config",
    "get_resource_config_path",
    "get_slack_config",
    "get_storage_config",
    "get_watcher_config",
    "load_resource_config",
    "parse_resource_config",
    "require_env_var",
    "require_env_vars",
]
