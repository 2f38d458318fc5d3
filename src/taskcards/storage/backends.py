"""Key-value storage backends for persisted card state."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from taskcards.state.errors import StorageError

LOGGER = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path("~/.taskcards/storage.json")


@runtime_checkable
class KeyValueStore(Protocol):
    """Whole-document string store, the counterpart of browser local storage."""

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key`` or None when absent."""

    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""


class MemoryStore:
    """In-process store backed by a dictionary."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def snapshot(self) -> Dict[str, str]:
        """Return a copy of every stored entry."""
        return dict(self._data)


class JsonFileStore:
    """Store every key in a single JSON document on disk.

    The document is a flat mapping of string keys to string values. Reads go
    to disk each time so separate processes observe each other's writes; every
    write rewrites the whole document through a temporary file.
    """

    def __init__(self, path: Path | str = DEFAULT_STORAGE_PATH) -> None:
        """Initialize the store.

        Args:
            path: Location of the JSON document. ``~`` is expanded.
        """
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        """Return the resolved document path."""
        return self._path

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``.

        Args:
            key: Entry name.

        Returns:
            Optional[str]: Stored value, or None when the key or document is missing.

        Raises:
            StorageError: If the document cannot be parsed.
        """
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``.

        Args:
            key: Entry name.
            value: String payload to store.

        Raises:
            StorageError: If the existing document cannot be parsed or written.
        """
        data = self._read()
        data[key] = value
        self._write(data)

    def keys(self) -> list[str]:
        """Return the stored keys in document order."""
        return list(self._read().keys())

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise StorageError(f"Invalid storage document at {self._path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise StorageError(f"Storage document at {self._path} must contain a JSON object.")
        return {str(key): value for key, value in raw.items() if isinstance(value, str)}

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise StorageError(f"Unable to write storage document {self._path}: {exc}") from exc
        LOGGER.debug("Wrote %d storage keys to %s", len(data), self._path)


__all__ = ["KeyValueStore", "MemoryStore", "JsonFileStore", "DEFAULT_STORAGE_PATH"]
