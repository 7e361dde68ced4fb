"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a configuration value is invalid.

    ``variables`` names the environment variables involved, if any.
    """

    def __init__(self, message: str, *, variables: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.variables = variables


class MissingConfigurationError(ConfigurationError):
    """Raised when required environment variables are absent or blank."""
