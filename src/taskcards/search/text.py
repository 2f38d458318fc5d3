"""Text matching used to filter the active card list."""

from __future__ import annotations

from typing import Iterable, List

from taskcards.state.models import Card


def normalize_query(text: str) -> str:
    """Return ``text`` folded for case-insensitive comparison.

    Args:
        text: Raw query or field text.

    Returns:
        str: Case-folded text. Whitespace and punctuation are kept as typed.
    """

    return text.casefold()


def card_matches(card: Card, query: str) -> bool:
    """Return True when ``query`` occurs in the card's topic or description."""

    needle = normalize_query(query)
    if not needle:
        return True
    return needle in normalize_query(card.topic) or needle in normalize_query(card.description)


def filter_cards(cards: Iterable[Card], query: str = "") -> List[Card]:
    """Return the cards matching ``query`` in their original order.

    Args:
        cards: Cards to filter.
        query: Substring to look for; an empty query matches everything.

    Returns:
        List[Card]: Matching cards.
    """

    return [card for card in cards if card_matches(card, query)]


__all__ = ["normalize_query", "card_matches", "filter_cards"]
