"""CLI tests for collection and theme commands."""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path

from click.testing import CliRunner, Result

from taskcards.cli import ACTIVE_COLLECTION_KEY, cli
from taskcards.storage import JsonFileStore


def _env_with_home(tmp_path: Path) -> dict[str, str]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path / "home")
    return env


def _invoke(runner: CliRunner, tmp_path: Path, *args: str, **kwargs) -> Result:
    store = tmp_path / "storage.json"
    env = _env_with_home(tmp_path)
    return runner.invoke(cli, ["--store", str(store), *args], env=env, **kwargs)


def _json(result: Result) -> dict:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def _parse(stamp: str) -> datetime:
    return datetime.fromisoformat(stamp.replace("Z", "+00:00"))


def _collections(runner: CliRunner, tmp_path: Path) -> dict:
    return _json(_invoke(runner, tmp_path, "collection", "list", "--json"))


def test_new_collection_binds_across_invocations(tmp_path: Path) -> None:
    """`collection new` binds, and later card edits land in the bound collection."""

    runner = CliRunner()

    created = _json(_invoke(runner, tmp_path, "collection", "new", "Sprint 1", "--json"))
    assert created["collection"]["cardCount"] == 0

    _json(_invoke(runner, tmp_path, "add", "--json", "-d", "draft runbook"))

    listing = _collections(runner, tmp_path)
    assert listing["activeCollection"] == "Sprint 1"
    assert [(entry["name"], entry["card_count"]) for entry in listing["collections"]] == [
        ("Sprint 1", 1)
    ]
    assert JsonFileStore(tmp_path / "storage.json").get(ACTIVE_COLLECTION_KEY) == "Sprint 1"


def test_quick_save_updates_bound_collection(tmp_path: Path) -> None:
    runner = CliRunner()
    _json(_invoke(runner, tmp_path, "collection", "new", "Sprint 1", "--json"))
    before = _collections(runner, tmp_path)["collections"][0]["updated_at"]

    saved = _json(_invoke(runner, tmp_path, "collection", "quick-save", "--json"))

    assert saved["collection"]["name"] == "Sprint 1"
    after = _collections(runner, tmp_path)["collections"]
    assert len(after) == 1
    assert _parse(after[0]["updated_at"]) > _parse(before)


def test_quick_save_without_active_collection_in_json_mode(tmp_path: Path) -> None:
    runner = CliRunner()

    result = _invoke(runner, tmp_path, "collection", "quick-save", "--json")

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"]["code"] == "no_active_collection"


def test_quick_save_without_active_collection_prompts_for_name(tmp_path: Path) -> None:
    runner = CliRunner()
    _json(_invoke(runner, tmp_path, "add", "--json", "-d", "loose card"))

    result = _invoke(runner, tmp_path, "collection", "quick-save", input="Backlog\n")

    assert result.exit_code == 0, result.output
    listing = _collections(runner, tmp_path)
    assert [entry["name"] for entry in listing["collections"]] == ["Backlog"]
    # Saving under a name does not make it the active collection.
    assert listing["activeCollection"] is None


def test_quick_save_uses_name_option_when_unbound(tmp_path: Path) -> None:
    runner = CliRunner()

    result = _invoke(runner, tmp_path, "collection", "quick-save", "--name", "Inbox", "--json")
    saved = _json(result)

    assert saved["collection"]["name"] == "Inbox"


def test_save_rejects_blank_name(tmp_path: Path) -> None:
    runner = CliRunner()

    result = _invoke(runner, tmp_path, "collection", "save", "   ", "--json")

    assert result.exit_code == 1
    assert json.loads(result.stdout)["error"]["code"] == "invalid_name"
    assert _collections(runner, tmp_path)["collections"] == []


def test_save_and_load_round_trip(tmp_path: Path) -> None:
    runner = CliRunner()
    _json(_invoke(runner, tmp_path, "add", "--json", "-d", "archived card"))
    saved = _json(_invoke(runner, tmp_path, "collection", "save", "Archive", "--json"))
    _json(_invoke(runner, tmp_path, "collection", "new", "Scratch", "--json"))

    cards = _json(_invoke(runner, tmp_path, "list", "--json"))
    assert cards["count"] == 0

    loaded = _json(
        _invoke(runner, tmp_path, "collection", "load", saved["collection"]["id"], "--json")
    )
    assert loaded["collection"]["name"] == "Archive"

    cards = _json(_invoke(runner, tmp_path, "list", "--json"))
    assert cards["activeCollection"] == "Archive"
    assert [entry["description"] for entry in cards["cards"]] == ["archived card"]


def test_load_unknown_collection(tmp_path: Path) -> None:
    runner = CliRunner()

    result = _invoke(runner, tmp_path, "collection", "load", "unknown-id")

    assert result.exit_code != 0
    assert "unknown-id" in result.output


def test_collection_status_and_human_list(tmp_path: Path) -> None:
    runner = CliRunner()

    status = _invoke(runner, tmp_path, "collection", "status")
    assert "No active collection" in status.output

    empty = _invoke(runner, tmp_path, "collection", "list")
    assert "No saved collections found" in empty.output

    _invoke(runner, tmp_path, "collection", "new", "Sprint 1")
    status = _invoke(runner, tmp_path, "collection", "status")
    assert "Active collection 'Sprint 1'" in status.output

    listing = _invoke(runner, tmp_path, "collection", "list")
    assert "Sprint 1 *" in listing.output


def test_theme_show_and_switch(tmp_path: Path) -> None:
    runner = CliRunner()

    assert _json(_invoke(runner, tmp_path, "theme", "--json"))["theme"] == "default"

    switched = _json(_invoke(runner, tmp_path, "theme", "midnight", "--json"))
    assert switched["theme"] == "midnight"
    assert JsonFileStore(tmp_path / "storage.json").get("appTheme") == "midnight"

    shown = _invoke(runner, tmp_path, "theme")
    assert "Theme: midnight" in shown.output
