"""Card and collection data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["low", "medium", "high"]


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; aware values pass through unchanged."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TaskCardsModel(BaseModel):
    """Shared configuration for persisted models.

    Fields use snake_case in Python and camelCase in the stored JSON, so
    ``created_at`` round-trips as ``createdAt``. Unknown keys are ignored.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


def _clean_tags(value: List[str]) -> List[str]:
    cleaned: List[str] = []
    for tag in value:
        stripped = tag.strip()
        if stripped and stripped not in cleaned:
            cleaned.append(stripped)
    return cleaned


class CardInput(TaskCardsModel):
    """User-supplied card fields for create and edit operations.

    Attributes:
        topic: Short title.
        label: Short badge text.
        description: Primary text shown on the front of the card.
        details: Secondary text shown on the back of the card.
        priority: Presentation priority.
        tags: Ordered tags without duplicates.
    """

    topic: str = ""
    label: str = ""
    description: str
    details: str = ""
    priority: Priority = "low"
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: List[str]) -> List[str]:
        return _clean_tags(value)


class Card(CardInput):
    """A single flip card.

    Attributes:
        id: Opaque identifier assigned at creation.
        created_at: Creation timestamp; never changes on edit.
    """

    id: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _utc_created_at(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def to_input(self) -> CardInput:
        """Return the editable fields of this card as a ``CardInput``."""
        return CardInput.model_validate(self.model_dump(include=set(CardInput.model_fields)))


class CardCollection(TaskCardsModel):
    """A named snapshot of cards.

    Attributes:
        id: Opaque identifier assigned at creation.
        name: Unique collection name; saves upsert by this key.
        cards: Full copy of the cards at save time.
        created_at: Timestamp of the first save.
        updated_at: Timestamp of the most recent save.
    """

    id: str
    name: str
    cards: List[Card] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _utc_timestamps(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class CollectionSummary(BaseModel):
    """Listing entry for a stored collection."""

    id: str
    name: str
    card_count: int
    updated_at: datetime


__all__ = [
    "Priority",
    "TaskCardsModel",
    "CardInput",
    "Card",
    "CardCollection",
    "CollectionSummary",
    "utcnow",
    "ensure_utc",
]
