"""Card search helpers."""

from .text import card_matches, filter_cards, normalize_query

__all__ = ["normalize_query", "card_matches", "filter_cards"]
