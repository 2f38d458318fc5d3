"""Card and collection management for the active card list."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Mapping, Optional

from taskcards.search import filter_cards
from taskcards.state import SnapshotRepository, find_collection
from taskcards.state.errors import InvalidNameError, NoActiveCollectionError, NotFoundError
from taskcards.state.models import (
    Card,
    CardCollection,
    CardInput,
    CollectionSummary,
    ensure_utc,
    utcnow,
)
from taskcards.storage import KeyValueStore

_TICK = timedelta(microseconds=1)


def _new_id() -> str:
    return uuid.uuid4().hex


def _copy_cards(cards: Iterable[Card]) -> List[Card]:
    return [card.model_copy(deep=True) for card in cards]


def _distinct_cards(cards: Iterable[Card]) -> List[Card]:
    """Copy cards, keeping the first card for each id."""
    seen: set[str] = set()
    distinct: List[Card] = []
    for card in cards:
        if card.id in seen:
            continue
        seen.add(card.id)
        distinct.append(card.model_copy(deep=True))
    return distinct


def _coerce_input(data: CardInput | Mapping[str, Any]) -> CardInput:
    if isinstance(data, CardInput):
        return CardInput.model_validate(data.model_dump())
    return CardInput.model_validate(dict(data))


class CollectionManager:
    """Own the active card list and the table of named collections.

    Every mutating operation writes a full snapshot back to the store. When a
    collection is bound, card mutations are mirrored into that collection as
    well. Collections are keyed by name: saving under an existing name
    overwrites its cards and keeps its id and creation time.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        strict: bool = False,
        sort_by_updated: bool = False,
        active_collection: Optional[str] = None,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Load persisted state and prepare the session.

        Args:
            store: Key-value backend holding the snapshots.
            strict: Reject malformed persisted data instead of dropping it.
            sort_by_updated: List collections by most recent update first.
            active_collection: Name of a stored collection to bind on start.
                Ignored when no collection has that name.
            clock: Source of aware UTC timestamps.
            id_factory: Source of fresh opaque identifiers.

        Raises:
            SnapshotError: In strict mode, if the stored snapshots are malformed.
        """
        self._repository = SnapshotRepository(store, strict=strict)
        self._sort_by_updated = sort_by_updated
        self._clock = clock or utcnow
        self._id_factory = id_factory or _new_id
        self._cards: List[Card] = self._repository.load_cards()
        self._collections: List[CardCollection] = self._repository.load_collections()
        self._active_name: Optional[str] = None
        if active_collection is not None and find_collection(self._collections, active_collection):
            self._active_name = active_collection

    @property
    def repository(self) -> SnapshotRepository:
        """Return the snapshot repository backing this manager."""
        return self._repository

    @property
    def cards(self) -> List[Card]:
        """Return a copy of the active card list."""
        return _copy_cards(self._cards)

    @property
    def active_collection_name(self) -> Optional[str]:
        """Return the bound collection name, or None when unbound."""
        return self._active_name

    @property
    def is_bound(self) -> bool:
        """Return True when card mutations are mirrored into a stored collection."""
        return self._active_name is not None

    # Card operations ---------------------------------------------------

    def get_card(self, card_id: str) -> Optional[Card]:
        """Return a copy of the active card with ``card_id`` if present."""
        index = self._card_index(card_id)
        if index is None:
            return None
        return self._cards[index].model_copy(deep=True)

    def add_card(self, data: CardInput | Mapping[str, Any]) -> Card:
        """Append a new card to the active list.

        Args:
            data: Card fields; ``description`` is required.

        Returns:
            Card: The created card with its id and creation time.

        Raises:
            pydantic.ValidationError: If ``data`` lacks a description or has invalid fields.
        """
        fields = _coerce_input(data)
        card = Card(id=self._fresh_card_id(), created_at=self._now(), **fields.model_dump())
        self._cards.append(card)
        self._persist_cards()
        return card.model_copy(deep=True)

    def update_card(self, card_id: str, data: CardInput | Mapping[str, Any]) -> Optional[Card]:
        """Replace the editable fields of an active card.

        The card keeps its ``id`` and ``created_at``. An unknown ``card_id`` is a
        no-op: nothing is written and None is returned.

        Args:
            card_id: Identifier of the card to edit.
            data: Replacement fields.

        Returns:
            Optional[Card]: The updated card, or None when ``card_id`` is unknown.
        """
        fields = _coerce_input(data)
        index = self._card_index(card_id)
        if index is None:
            return None
        original = self._cards[index]
        updated = Card(id=original.id, created_at=original.created_at, **fields.model_dump())
        self._cards[index] = updated
        self._persist_cards()
        return updated.model_copy(deep=True)

    def remove_card(self, card_id: str) -> bool:
        """Remove a card from the active list.

        Returns:
            bool: True when a card was removed, False when ``card_id`` is unknown.
        """
        index = self._card_index(card_id)
        if index is None:
            return False
        del self._cards[index]
        self._persist_cards()
        return True

    def list_cards(self, query: str = "") -> List[Card]:
        """Return active cards whose topic or description contains ``query``.

        Matching ignores case and keeps the active list order. An empty query
        returns every card.
        """
        return _copy_cards(filter_cards(self._cards, query))

    # Collection operations ---------------------------------------------

    def save_as(self, name: str, cards: Iterable[Card] | None = None) -> CardCollection:
        """Store ``cards`` under ``name`` without changing the bound collection.

        Args:
            name: Collection name; surrounding whitespace is removed.
            cards: Cards to store. Defaults to the active card list.

        Returns:
            CardCollection: Copy of the stored collection.

        Raises:
            InvalidNameError: If ``name`` is blank.
        """
        cleaned = self._validate_name(name)
        collection = self._upsert(cleaned, self._cards if cards is None else cards)
        self._repository.save_collections(self._collections)
        return collection.model_copy(deep=True)

    def create_new(self, name: str) -> CardCollection:
        """Store an empty collection under ``name``, clear the active list and bind it.

        Raises:
            InvalidNameError: If ``name`` is blank.
        """
        cleaned = self._validate_name(name)
        collection = self._upsert(cleaned, [])
        self._cards = []
        self._active_name = cleaned
        self._repository.save_collections(self._collections)
        self._repository.save_cards(self._cards)
        return collection.model_copy(deep=True)

    def load(self, collection_id: str) -> CardCollection:
        """Replace the active list with a copy of a stored collection and bind it.

        Raises:
            NotFoundError: If no collection has ``collection_id``; nothing changes.
        """
        collection = self._collection_by_id(collection_id)
        self._cards = _copy_cards(collection.cards)
        self._active_name = collection.name
        self._repository.save_cards(self._cards)
        return collection.model_copy(deep=True)

    def quick_save(self, cards: Iterable[Card] | None = None) -> CardCollection:
        """Overwrite the bound collection with ``cards`` (default: the active list).

        Raises:
            NoActiveCollectionError: If no collection is bound; callers should
                ask for a name and use ``save_as`` instead.
        """
        if self._active_name is None:
            raise NoActiveCollectionError("No collection is active; save under a new name.")
        return self.save_as(self._active_name, cards)

    def list_collections(self) -> List[CollectionSummary]:
        """Summarize stored collections in insertion order (or newest first when configured)."""
        summaries = [
            CollectionSummary(
                id=collection.id,
                name=collection.name,
                card_count=len(collection.cards),
                updated_at=collection.updated_at,
            )
            for collection in self._collections
        ]
        if self._sort_by_updated:
            summaries.sort(key=lambda summary: summary.updated_at, reverse=True)
        return summaries

    def get_collection(self, collection_id: str) -> CardCollection:
        """Return a copy of the collection with ``collection_id``.

        Raises:
            NotFoundError: If the id is unknown.
        """
        return self._collection_by_id(collection_id).model_copy(deep=True)

    def find_collection(self, name: str) -> Optional[CardCollection]:
        """Return a copy of the collection stored under ``name`` if present."""
        collection = find_collection(self._collections, name.strip())
        return collection.model_copy(deep=True) if collection else None

    # Internal helpers --------------------------------------------------

    def _persist_cards(self) -> None:
        self._repository.save_cards(self._cards)
        if self._active_name is not None:
            self._upsert(self._active_name, self._cards)
            self._repository.save_collections(self._collections)

    def _upsert(self, name: str, cards: Iterable[Card]) -> CardCollection:
        copies = _distinct_cards(cards)
        existing = find_collection(self._collections, name)
        if existing is not None:
            existing.cards = copies
            existing.updated_at = self._timestamp(after=existing.updated_at)
            return existing

        now = self._now()
        collection = CardCollection(
            id=self._fresh_collection_id(),
            name=name,
            cards=copies,
            created_at=now,
            updated_at=now,
        )
        self._collections.append(collection)
        return collection

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    def _timestamp(self, *, after: datetime) -> datetime:
        now = self._now()
        if now <= after:
            return after + _TICK
        return now

    def _validate_name(self, name: str) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise InvalidNameError("Collection name must not be empty.")
        return cleaned

    def _card_index(self, card_id: str) -> Optional[int]:
        for index, card in enumerate(self._cards):
            if card.id == card_id:
                return index
        return None

    def _collection_by_id(self, collection_id: str) -> CardCollection:
        for collection in self._collections:
            if collection.id == collection_id:
                return collection
        raise NotFoundError(f"No collection with id {collection_id!r}.")

    def _fresh_card_id(self) -> str:
        taken = {card.id for card in self._cards}
        candidate = self._id_factory()
        while candidate in taken:
            candidate = self._id_factory()
        return candidate

    def _fresh_collection_id(self) -> str:
        taken = {collection.id for collection in self._collections}
        candidate = self._id_factory()
        while candidate in taken:
            candidate = self._id_factory()
        return candidate


__all__ = ["CollectionManager"]
