"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid; the process must not start."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class InvalidConfigurationError(ConfigurationError):
    """Raised when a configuration value is present but cannot be used."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid {name}={value!r}: {reason}")
        self.name = name
        self.value = value
