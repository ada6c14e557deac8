"""Tests for mastery statistics."""

import pytest

from flashdeck.models import CardStatus
from flashdeck.study import count_answered, count_correct, mastery_rate, restrict_to_cards, round_half_up


def _status(answered: bool, correct: bool) -> CardStatus:
    return CardStatus(isAnswered=answered, isCorrect=correct)


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.0, 0), (0.4, 0), (0.5, 1), (2.5, 3), (33.333, 33), (66.666, 67), (100.0, 100)],
    )
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected


class TestMasteryRate:
    def test_empty_deck(self):
        assert mastery_rate(0, {}) == 0

    def test_no_records(self):
        assert mastery_rate(3, {}) == 0

    def test_one_of_three(self):
        statuses = {"card-1": _status(True, True), "card-2": _status(True, False)}
        assert mastery_rate(3, statuses) == 33

    def test_two_of_three(self):
        statuses = {"card-1": _status(True, True), "card-2": _status(True, True), "card-3": _status(True, False)}
        assert mastery_rate(3, statuses) == 67

    def test_half_rounds_up(self):
        assert mastery_rate(8, {f"card-{i}": _status(True, True) for i in range(1, 5)}) == 50
        assert mastery_rate(200, {f"card-{i}": _status(True, True) for i in range(1, 2)}) == 1

    def test_all_correct(self):
        statuses = {"card-1": _status(True, True), "card-2": _status(True, True)}
        assert mastery_rate(2, statuses) == 100


class TestCounts:
    def test_counts(self):
        statuses = {
            "card-1": _status(True, True),
            "card-2": _status(True, False),
            "card-3": _status(False, False),
        }
        assert count_answered(statuses) == 2
        assert count_correct(statuses) == 1

    def test_restrict_to_cards_drops_stale_records(self):
        statuses = {"card-1": _status(True, True), "gone": _status(True, True)}
        restricted = restrict_to_cards(["card-1", "card-2"], statuses)

        assert list(restricted) == ["card-1"]
        assert mastery_rate(2, restricted) == 50
