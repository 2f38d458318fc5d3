"""Card and collection model tests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from taskcards.state.models import Card, CardCollection, CardInput

CREATED = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def test_card_input_defaults() -> None:
    data = CardInput(description="draft runbook")

    assert data.topic == ""
    assert data.label == ""
    assert data.details == ""
    assert data.priority == "low"
    assert data.tags == []


def test_card_input_requires_description() -> None:
    with pytest.raises(ValidationError):
        CardInput.model_validate({"topic": "No body"})


def test_card_input_rejects_unknown_priority() -> None:
    with pytest.raises(ValidationError):
        CardInput(description="x", priority="urgent")


def test_tags_are_trimmed_and_deduplicated_in_order() -> None:
    data = CardInput(description="x", tags=["beta", " alpha ", "beta", "", "Alpha", "alpha"])

    assert data.tags == ["beta", "alpha", "Alpha"]


def test_card_serializes_with_camel_case_keys() -> None:
    created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    card = Card(id="c1", description="front", created_at=created)

    payload = card.model_dump(mode="json", by_alias=True)

    assert payload["id"] == "c1"
    assert "createdAt" in payload
    assert "created_at" not in payload
    assert Card.model_validate(payload).created_at == created


def test_naive_timestamps_are_treated_as_utc() -> None:
    card = Card.model_validate(
        {"id": "c1", "description": "x", "createdAt": "2024-05-01T12:30:00"}
    )

    assert card.created_at.tzinfo is not None
    assert card.created_at.utcoffset().total_seconds() == 0


def test_unknown_keys_are_ignored_on_load() -> None:
    card = Card.model_validate(
        {"id": "c1", "description": "x", "createdAt": "2024-05-01T12:30:00Z", "color": "green"}
    )

    assert not hasattr(card, "color")


def test_to_input_drops_identity_fields() -> None:
    card = Card(
        id="c1", description="front", topic="T", tags=["a"], details="back", created_at=CREATED
    )

    data = card.to_input()

    assert type(data) is CardInput
    assert data.model_dump() == {
        "topic": "T",
        "label": "",
        "description": "front",
        "details": "back",
        "priority": "low",
        "tags": ["a"],
    }


def test_collection_round_trips_nested_cards() -> None:
    collection = CardCollection(
        id="k1",
        name="Sprint",
        cards=[Card(id="c1", description="x", created_at=CREATED)],
        created_at=CREATED,
        updated_at=CREATED,
    )

    restored = CardCollection.model_validate(collection.model_dump(mode="json", by_alias=True))

    assert restored.name == "Sprint"
    assert [card.id for card in restored.cards] == ["c1"]
    assert restored.updated_at == collection.updated_at


def test_stored_card_without_created_at_is_invalid() -> None:
    with pytest.raises(ValidationError):
        Card.model_validate({"id": "c1", "description": "x"})


def test_stored_collection_without_timestamps_is_invalid() -> None:
    with pytest.raises(ValidationError):
        CardCollection.model_validate({"id": "k1", "name": "Sprint", "cards": []})
