"""Derived mastery statistics over a user's status map."""

from __future__ import annotations

import math
from typing import Iterable, Mapping

from flashdeck.models.status import CardStatus


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def count_answered(statuses: Mapping[str, CardStatus]) -> int:
    return sum(1 for status in statuses.values() if status.isAnswered)


def count_correct(statuses: Mapping[str, CardStatus]) -> int:
    return sum(1 for status in statuses.values() if status.isCorrect)


def mastery_rate(total_cards: int, statuses: Mapping[str, CardStatus]) -> int:
    """Percentage (0-100) of the deck currently marked correct.

    An empty deck has a mastery rate of 0.
    """
    if total_cards == 0:
        return 0
    return round_half_up(100 * count_correct(statuses) / total_cards)


def restrict_to_cards(card_ids: Iterable[str], statuses: Mapping[str, CardStatus]) -> dict[str, CardStatus]:
    """Drop records of cards that are no longer in the deck."""
    wanted = set(card_ids)
    return {card_id: status for card_id, status in statuses.items() if card_id in wanted}
