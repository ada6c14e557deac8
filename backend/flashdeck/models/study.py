"""Models for study sessions (mastery rounds) and one-shot quizzes."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


Direction = Literal["normal", "reverse"]
QuestionType = Literal["typing", "choice"]
StudyMode = Literal["continue", "fresh"]
SessionPhase = Literal["loading", "round_active", "round_complete", "all_mastered", "error"]


class StudyConfig(BaseModel):
    """Options recognized when a session is opened.

    ``mode="continue"`` resumes mastery rounds from the persisted status map,
    ``mode="fresh"`` composes a one-shot scored test instead.
    """

    direction: Direction = "normal"
    shuffle: bool = False
    mode: StudyMode = "continue"
    questionType: QuestionType = "typing"
    questionCount: int = Field(10, description="Test only; clamped to the deck size")
    typingRatio: int = Field(50, description="Test only; percentage of typing questions")


class StudyStartRequest(BaseModel):
    """Request body for POST /study/{deck_id}/start."""

    direction: Direction = "normal"
    shuffle: bool = False
    questionType: QuestionType = "typing"


class QuizStartRequest(BaseModel):
    """Request body for POST /quiz/{deck_id}/start."""

    questionCount: int | None = Field(None, description="Defaults to QUIZ_DEFAULT_QUESTION_COUNT")
    typingRatio: int | None = Field(None, description="Defaults to QUIZ_DEFAULT_TYPING_RATIO")


class AnswerRequest(BaseModel):
    """A typed answer or the selected choice."""

    response: str = Field(..., max_length=2000)


class AnswerResult(BaseModel):
    """Outcome of a single scored answer."""

    cardId: str
    isCorrect: bool
    expectedAnswer: str
    attemptCount: int | None = None
    requiresRetype: bool = False
    persisted: bool = True


class StudyPrompt(BaseModel):
    """The card currently asked, without its expected answer."""

    cardId: str
    prompt: str
    choices: list[str] | None = None


class StudyStateResponse(BaseModel):
    """Snapshot of a mastery session."""

    deckId: str
    deckTitle: str
    direction: Direction
    questionType: QuestionType
    phase: SessionPhase
    round: int
    position: int
    workingSetSize: int
    current: StudyPrompt | None = None
    lastResult: AnswerResult | None = None
    retypePending: bool = False
    correctCount: int = 0
    incorrectCount: int = 0
    completed: bool = False
    masteryRate: int = 0


class RetypeResponse(BaseModel):
    """Result of a retype attempt after a typing miss."""

    accepted: bool
    retypePending: bool


class QuizQuestionView(BaseModel):
    """A quiz question as shown to the learner."""

    cardId: str
    type: QuestionType
    prompt: str
    choices: list[str] | None = None


class QuizStateResponse(BaseModel):
    """Snapshot of a one-shot quiz."""

    deckId: str
    deckTitle: str
    questionCount: int
    typingCount: int
    position: int
    current: QuizQuestionView | None = None
    lastResult: AnswerResult | None = None
    correctCount: int = 0
    incorrectCount: int = 0
    finished: bool = False
    submitted: bool = False


class QuizSubmitResponse(BaseModel):
    """Result of committing a quiz."""

    deckId: str
    updatedCount: int
    correctCount: int
    incorrectCount: int
    scoreRate: int
