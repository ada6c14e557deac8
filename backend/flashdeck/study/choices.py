"""Multiple-choice option generation.

Wrong options (distractors) are taken from the sibling cards of a deck, so
they look like plausible answers to the learner.
"""

from __future__ import annotations

import random
from typing import Sequence

from flashdeck.models.card import Card
from flashdeck.study.shuffle import shuffle

MAX_CHOICES = 4


def generate_choices(
    correct_answer: str,
    candidate_pool: Sequence[Card],
    current_card_id: str,
    use_question_side: bool,
    rng: random.Random | None = None,
) -> list[str]:
    """Build up to four unique options containing ``correct_answer`` once.

    Args:
        correct_answer: The value the learner is expected to pick
        candidate_pool: Cards to draw wrong options from (usually the whole deck)
        current_card_id: The card being asked; it never supplies a distractor
        use_question_side: Take distractors from the question field instead of the answer
        rng: Optional random source

    Returns:
        The options in random order. When no distractor can be found the
        result is ``[correct_answer]``.
    """
    others = [card for card in candidate_pool if card.id != current_card_id]

    wrong_choices: list[str] = []
    for card in shuffle(others, rng):
        if len(wrong_choices) >= MAX_CHOICES - 1:
            break
        value = card.question if use_question_side else card.answer
        if value == correct_answer or value in wrong_choices:
            continue
        wrong_choices.append(value)

    if not wrong_choices:
        return [correct_answer]

    return shuffle([*wrong_choices, correct_answer], rng)
