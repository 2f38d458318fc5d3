"""Custom exceptions for configuration management."""

from taskcards.state.errors import TaskCardsError


class ConfigError(TaskCardsError):
    """Raised when configuration data cannot be processed."""
