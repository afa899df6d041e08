"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values or files are invalid.

    Configuration problems are detected before the watcher runs its first tick and
    terminate the process.
    """


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


ConfigError = ConfigurationError
