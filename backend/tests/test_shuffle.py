"""Tests for the Fisher-Yates shuffle."""

import random
from collections import Counter

from flashdeck.study import shuffle


class TestShuffle:
    def test_returns_permutation(self, rng):
        items = list(range(20))
        result = shuffle(items, rng)

        assert sorted(result) == items
        assert len(result) == len(items)

    def test_does_not_mutate_input(self, rng):
        items = ["a", "b", "c", "d"]
        shuffle(items, rng)
        assert items == ["a", "b", "c", "d"]

    def test_empty_and_single(self, rng):
        assert shuffle([], rng) == []
        assert shuffle(["only"], rng) == ["only"]

    def test_same_seed_same_order(self):
        items = list(range(10))
        assert shuffle(items, random.Random(7)) == shuffle(items, random.Random(7))

    def test_accepts_tuples(self, rng):
        assert sorted(shuffle((3, 1, 2), rng)) == [1, 2, 3]

    def test_all_permutations_reachable(self):
        """Each of the 6 orderings of 3 items shows up with a fair rng."""
        rng = random.Random(99)
        counts = Counter(tuple(shuffle([1, 2, 3], rng)) for _ in range(3000))

        assert len(counts) == 6
        for count in counts.values():
            assert 350 < count < 650
