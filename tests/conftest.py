"""Shared fixtures for taskcards tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from taskcards.manager import CollectionManager
from taskcards.storage import MemoryStore


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingStore(MemoryStore):
    """Memory store that remembers which keys were written."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append(key)
        super().set(key, value)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def manager(store: RecordingStore, clock: FrozenClock) -> CollectionManager:
    return CollectionManager(store, clock=clock)
