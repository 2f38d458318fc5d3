"""Configuration models describing taskcards settings."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaskCardsBaseModel(BaseModel):
    """Shared configuration for settings models."""

    model_config = ConfigDict(extra="forbid")


class StorageSettings(TaskCardsBaseModel):
    """Where and how card state is persisted.

    Attributes:
        path: Location of the JSON storage document.
        strict: Whether malformed stored entries abort loading instead of being dropped.
    """

    path: str = "~/.taskcards/storage.json"
    strict: bool = False


class CollectionSettings(TaskCardsBaseModel):
    """Collection listing preferences.

    Attributes:
        sort_by_updated: List collections newest first instead of insertion order.
    """

    sort_by_updated: bool = False


class DisplaySettings(TaskCardsBaseModel):
    """Presentation defaults.

    Attributes:
        default_theme: Theme reported when none has been chosen yet.
    """

    default_theme: str = "default"

    @field_validator("default_theme")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("default_theme must not be empty")
        return value.strip()


class LoggingSettings(TaskCardsBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
    """

    level: str = "WARNING"


class CLIOptions(TaskCardsBaseModel):
    """CLI behavior defaults.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class TaskCardsConfig(TaskCardsBaseModel):
    """Top-level configuration for taskcards.

    Attributes:
        storage: Persistence settings.
        collections: Collection listing settings.
        display: Presentation defaults.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    storage: StorageSettings = Field(default_factory=StorageSettings)
    collections: CollectionSettings = Field(default_factory=CollectionSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "TaskCardsBaseModel",
    "StorageSettings",
    "CollectionSettings",
    "DisplaySettings",
    "LoggingSettings",
    "CLIOptions",
    "TaskCardsConfig",
]
