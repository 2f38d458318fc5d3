"""Configuration management for taskcards."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import TaskCardsConfig
from .resolver import ENV_PREFIX, assign_nested, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.taskcards/config.yaml")


class ConfigManager:
    """Read, validate and update the YAML configuration file.

    Effective settings are the defaults overlaid by the file, then by
    ``TASKCARDS__SECTION__KEY`` environment variables, then by CLI overrides.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> TaskCardsConfig:
        """Return the effective configuration, creating the file on first use.

        Args:
            cli_overrides: Highest-priority values keyed by dotted path.
            include_env: Apply environment variables carrying ``ENV_PREFIX``.
            env_overrides: Environment to read instead of the process environment.

        Raises:
            ConfigError: If the file cannot be parsed or values are invalid.
        """
        self.ensure_exists()
        env = None
        if include_env:
            env = self._from_env(self._env if env_overrides is None else env_overrides)
        return resolve_with_precedence(
            defaults=TaskCardsConfig(),
            file_overrides=self._read_file(),
            env_overrides=env,
            cli_overrides=cli_overrides,
        )

    def ensure_exists(self) -> Path:
        """Write a default configuration file if none exists yet."""
        if not self._config_path.exists():
            self.save(TaskCardsConfig().model_dump(mode="python"))
        return self._config_path

    def save(self, data: Mapping[str, Any]) -> None:
        """Overwrite the configuration file with ``data``."""
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(
            f"# taskcards configuration file\n# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def set_value(self, key: str, value: Any) -> bool:
        """Store ``value`` under the dotted ``key`` in the configuration file.

        Returns:
            bool: False when the effective file configuration was already equal.

        Raises:
            ConfigError: If the key is empty or the result fails validation.
        """
        path = [segment.strip() for segment in key.split(".") if segment.strip()]
        if not path:
            raise ConfigError("Key must be a dotted path such as 'storage.strict'.")

        self.ensure_exists()
        data = self._read_file()
        before = resolve_with_precedence(defaults=TaskCardsConfig(), file_overrides=data)
        assign_nested(data, path, value)
        after = resolve_with_precedence(defaults=TaskCardsConfig(), file_overrides=data)
        if after == before:
            return False
        self.save(data)
        return True

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return raw

    def _from_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for name, raw in env.items():
            if not name.startswith(ENV_PREFIX):
                continue
            path = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
            if not path:
                continue
            try:
                value: Any = yaml.safe_load(raw)
            except yaml.YAMLError:
                value = raw
            assign_nested(overrides, path, value)
        return overrides


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "TaskCardsConfig",
    "assign_nested",
    "resolve_with_precedence",
    "ConfigError",
]
