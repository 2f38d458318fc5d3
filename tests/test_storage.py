"""Storage backend tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from taskcards.state.errors import StorageError
from taskcards.storage import JsonFileStore, KeyValueStore, MemoryStore


def test_memory_store_get_and_set() -> None:
    store = MemoryStore({"cards": "[]"})

    assert store.get("cards") == "[]"
    assert store.get("missing") is None

    store.set("cards", '[{"id": "1"}]')

    assert store.snapshot() == {"cards": '[{"id": "1"}]'}


def test_backends_satisfy_store_protocol(tmp_path: Path) -> None:
    assert isinstance(MemoryStore(), KeyValueStore)
    assert isinstance(JsonFileStore(tmp_path / "storage.json"), KeyValueStore)


def test_json_file_store_missing_document_reads_as_empty(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "nested" / "storage.json")

    assert store.get("cards") is None
    assert store.keys() == []


def test_json_file_store_persists_across_instances(tmp_path: Path) -> None:
    """Values written by one store instance are visible to a fresh one.

    Args:
        tmp_path: Temporary directory provided by pytest.
    """
    path = tmp_path / "nested" / "storage.json"
    JsonFileStore(path).set("cards", "[]")
    JsonFileStore(path).set("appTheme", "dark")

    reopened = JsonFileStore(path)

    assert reopened.get("cards") == "[]"
    assert reopened.get("appTheme") == "dark"
    assert reopened.keys() == ["cards", "appTheme"]
    assert json.loads(path.read_text(encoding="utf-8")) == {"cards": "[]", "appTheme": "dark"}
    assert not path.with_name("storage.json.tmp").exists()


def test_json_file_store_invalid_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("not json", encoding="utf-8")

    with pytest.raises(StorageError):
        JsonFileStore(path).get("cards")


def test_json_file_store_non_object_document_raises(tmp_path: Path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(StorageError):
        JsonFileStore(path).set("cards", "[]")


def test_json_file_store_unwritable_location_raises(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = JsonFileStore(blocker / "storage.json")

    assert store.get("cards") is None
    with pytest.raises(StorageError):
        store.set("cards", "[]")
