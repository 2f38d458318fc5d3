"""Layered configuration resolution."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from .exceptions import ConfigError
from .models import TaskCardsConfig

ENV_PREFIX = "TASKCARDS__"


def assign_nested(target: dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Set ``value`` at ``path`` inside ``target``, creating sections on the way.

    Raises:
        ConfigError: If a segment before the last one holds a non-mapping value.
    """
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(f"Cannot set '{'.'.join(path)}': '{segment}' is not a section.")
        node = child
    node[path[-1]] = value


def resolve_with_precedence(
    *,
    defaults: TaskCardsConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> TaskCardsConfig:
    """Layer overrides over ``defaults``; later layers win (file < environment < CLI).

    Override keys may be nested mappings or dotted paths such as
    ``"storage.strict"``.

    Raises:
        ConfigError: If a layer is malformed or the merged values fail validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer:
            merged = _merge(merged, _expand(layer, label))

    try:
        return TaskCardsConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def _expand(layer: Mapping[str, Any], label: str) -> dict[str, Any]:
    if not isinstance(layer, MappingABC):
        raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")

    expanded: dict[str, Any] = {}
    for key, value in layer.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = _expand(value, label)
        entry: dict[str, Any] = {}
        assign_nested(entry, key.split("."), value)
        expanded = _merge(expanded, entry)
    return expanded


def _merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    result = deepcopy(dict(base))
    for key, value in overlay.items():
        current = result.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            result[key] = _merge(current, value)
        else:
            result[key] = deepcopy(value)
    return result


__all__ = ["ENV_PREFIX", "assign_nested", "resolve_with_precedence"]
