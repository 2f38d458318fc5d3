"""Persistence backends for taskcards."""

from .backends import DEFAULT_STORAGE_PATH, JsonFileStore, KeyValueStore, MemoryStore

__all__ = ["KeyValueStore", "MemoryStore", "JsonFileStore", "DEFAULT_STORAGE_PATH"]
