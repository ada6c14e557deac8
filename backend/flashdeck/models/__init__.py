"""Models module for Pydantic schemas."""

from .deck import (
    Deck,
    DeckBase,
    DeckCreate,
    DeckUpdate,
    DeckResponse,
    DeckListResponse,
    DeckStatsResponse,
    ImportResponse,
)
from .card import (
    Card,
    CardBase,
    CardCreate,
    CardUpdate,
    CardResponse,
    CardListResponse,
)
from .status import (
    CardStatus,
    StatusDocument,
    StatusUpdate,
    UserStatusMap,
)
from .study import (
    AnswerRequest,
    AnswerResult,
    Direction,
    QuestionType,
    QuizQuestionView,
    QuizStartRequest,
    QuizStateResponse,
    QuizSubmitResponse,
    RetypeResponse,
    SessionPhase,
    StudyConfig,
    StudyMode,
    StudyPrompt,
    StudyStartRequest,
    StudyStateResponse,
)

__all__ = [
    "Deck",
    "DeckBase",
    "DeckCreate",
    "DeckUpdate",
    "DeckResponse",
    "DeckListResponse",
    "DeckStatsResponse",
    "ImportResponse",
    "Card",
    "CardBase",
    "CardCreate",
    "CardUpdate",
    "CardResponse",
    "CardListResponse",
    "CardStatus",
    "StatusDocument",
    "StatusUpdate",
    "UserStatusMap",
    "AnswerRequest",
    "AnswerResult",
    "Direction",
    "QuestionType",
    "QuizQuestionView",
    "QuizStartRequest",
    "QuizStateResponse",
    "QuizSubmitResponse",
    "RetypeResponse",
    "SessionPhase",
    "StudyConfig",
    "StudyMode",
    "StudyPrompt",
    "StudyStartRequest",
    "StudyStateResponse",
]
