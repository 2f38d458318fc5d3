"""Snapshot persistence for the active card list and stored collections."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from .errors import (
    InvalidNameError,
    NoActiveCollectionError,
    NotFoundError,
    SnapshotError,
    StateError,
    StorageError,
    TaskCardsError,
)
from .models import Card, CardCollection, CardInput, CollectionSummary, Priority

if TYPE_CHECKING:
    from taskcards.storage import KeyValueStore

LOGGER = logging.getLogger(__name__)

CARDS_KEY = "cards"
COLLECTIONS_KEY = "cardCollections"
THEME_KEY = "appTheme"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class SnapshotRepository:
    """Read and write full snapshots of card state through a key-value store."""

    def __init__(self, store: "KeyValueStore", *, strict: bool = False) -> None:
        """Initialize the repository.

        Args:
            store: Backend holding the persisted keys.
            strict: Raise ``SnapshotError`` on malformed data instead of dropping it.
        """
        self._store = store
        self._strict = strict

    @property
    def store(self) -> "KeyValueStore":
        """Return the underlying key-value store."""
        return self._store

    def load_cards(self) -> List[Card]:
        """Load the active card list.

        Returns:
            List[Card]: Valid cards in stored order, first occurrence of each id kept.

        Raises:
            SnapshotError: In strict mode, if any stored entry is malformed.
        """
        cards = self._load_array(CARDS_KEY, Card)
        return self._unique(cards, key=lambda card: card.id, label="card id", source=CARDS_KEY)

    def save_cards(self, cards: Iterable[Card]) -> None:
        """Persist the active card list.

        Args:
            cards: Cards to write in order.
        """
        self._write_array(CARDS_KEY, cards)

    def load_collections(self) -> List[CardCollection]:
        """Load the stored collections.

        Returns:
            List[CardCollection]: Valid collections, first occurrence of each name kept.
                Within each collection the first card with a given id is kept.

        Raises:
            SnapshotError: In strict mode, if any stored entry is malformed.
        """
        collections = self._load_array(COLLECTIONS_KEY, CardCollection)
        collections = self._unique(
            collections,
            key=lambda collection: collection.name,
            label="collection name",
            source=COLLECTIONS_KEY,
        )
        for collection in collections:
            collection.cards = self._unique(
                collection.cards,
                key=lambda card: card.id,
                label="card id",
                source=f"{COLLECTIONS_KEY}[{collection.name!r}]",
            )
        return collections

    def save_collections(self, collections: Iterable[CardCollection]) -> None:
        """Persist the collections table.

        Args:
            collections: Collections to write in order.
        """
        self._write_array(COLLECTIONS_KEY, collections)

    def load_theme(self, default: str = "default") -> str:
        """Return the stored theme name, or ``default`` when unset or blank."""
        value = self._store.get(THEME_KEY)
        if value is None or not value.strip():
            return default
        return value

    def save_theme(self, theme: str) -> None:
        """Persist the theme name.

        Raises:
            InvalidNameError: If ``theme`` is blank.
        """
        cleaned = theme.strip()
        if not cleaned:
            raise InvalidNameError("Theme name must not be empty.")
        self._store.set(THEME_KEY, cleaned)

    # Internal helpers -------------------------------------------------

    def _load_array(self, key: str, model: Type[_ModelT]) -> List[_ModelT]:
        raw = self._store.get(key)
        if raw is None:
            return []
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            self._reject(f"Stored '{key}' is not valid JSON: {exc}")
            return []
        if not isinstance(data, list):
            self._reject(f"Stored '{key}' must be a JSON array, found {type(data).__name__}.")
            return []

        items: List[_ModelT] = []
        for index, entry in enumerate(data):
            try:
                items.append(model.model_validate(entry))
            except ValidationError as exc:
                self._reject(
                    f"Dropping malformed entry {index} in '{key}': "
                    f"{exc.error_count()} validation error(s)"
                )
        LOGGER.debug("Loaded %d entries from '%s'", len(items), key)
        return items

    def _write_array(self, key: str, items: Iterable[BaseModel]) -> None:
        payload = [item.model_dump(mode="json", by_alias=True) for item in items]
        self._store.set(key, json.dumps(payload))
        LOGGER.debug("Saved %d entries to '%s'", len(payload), key)

    def _unique(
        self,
        items: List[_ModelT],
        *,
        key: Callable[[_ModelT], str],
        label: str,
        source: str,
    ) -> List[_ModelT]:
        seen: set[str] = set()
        unique: List[_ModelT] = []
        for item in items:
            identity = key(item)
            if identity in seen:
                self._reject(f"Dropping duplicate {label} {identity!r} in '{source}'")
                continue
            seen.add(identity)
            unique.append(item)
        return unique

    def _reject(self, message: str) -> None:
        if self._strict:
            raise SnapshotError(message)
        LOGGER.warning(message)


def find_collection(collections: Iterable[CardCollection], name: str) -> Optional[CardCollection]:
    """Return the collection stored under ``name`` if present."""
    for collection in collections:
        if collection.name == name:
            return collection
    return None


__all__ = [
    "SnapshotRepository",
    "CARDS_KEY",
    "COLLECTIONS_KEY",
    "THEME_KEY",
    "find_collection",
    "Card",
    "CardInput",
    "CardCollection",
    "CollectionSummary",
    "Priority",
    "TaskCardsError",
    "StateError",
    "StorageError",
    "SnapshotError",
    "InvalidNameError",
    "NotFoundError",
    "NoActiveCollectionError",
]
