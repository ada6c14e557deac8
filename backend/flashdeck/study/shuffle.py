"""Fisher-Yates shuffle used by every study mode."""

from __future__ import annotations

import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a shuffled copy of ``items``.

    Walks from the last index down to 1, swapping each element with a
    uniformly chosen element at an index <= its own. The input is never
    mutated. Pass ``rng`` for reproducible permutations.
    """
    rng = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
