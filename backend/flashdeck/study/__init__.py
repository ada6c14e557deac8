"""Study modes: mastery rounds, one-shot tests and their helpers."""

from .shuffle import shuffle
from .choices import generate_choices
from .stats import count_answered, count_correct, mastery_rate, restrict_to_cards, round_half_up
from .engine import MasteryEngine, answers_match, normalize_answer
from .composer import QuizQuestion, TestComposer
from .session_store import (
    StudySessionStore,
    get_session_store,
    get_study_settings,
    open_session,
    reset_session_store,
)

__all__ = [
    "shuffle",
    "generate_choices",
    "count_answered",
    "count_correct",
    "mastery_rate",
    "restrict_to_cards",
    "round_half_up",
    "MasteryEngine",
    "answers_match",
    "normalize_answer",
    "QuizQuestion",
    "TestComposer",
    "StudySessionStore",
    "get_session_store",
    "get_study_settings",
    "open_session",
    "reset_session_store",
]
