"""One-shot mixed test (typing + multiple choice).

Answers are scored as they come in but nothing is written until the test
is submitted, which issues a single batch status write. Abandoning a test
before that leaves the stored progress untouched.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from flashdeck.errors import AuthorizationError, ConfigurationError, InvalidActionError, StoreError
from flashdeck.models import (
    AnswerResult,
    Card,
    Deck,
    QuestionType,
    QuizQuestionView,
    QuizStateResponse,
    QuizSubmitResponse,
    StatusUpdate,
    StudyConfig,
)
from flashdeck.repositories.status_repository import CardStatusStore
from flashdeck.study.choices import generate_choices
from flashdeck.study.engine import answers_match
from flashdeck.study.shuffle import shuffle
from flashdeck.study.stats import round_half_up

logger = logging.getLogger(__name__)


@dataclass
class QuizQuestion:
    card: Card
    type: QuestionType
    choices: list[str] | None = None

    def is_correct(self, response: str) -> bool:
        if self.type == "typing":
            return answers_match(response, self.card.answer)
        return response == self.card.answer


class TestComposer:
    """Builds, scores and commits a fixed-length test over a deck.

    ``question_count`` is clamped to [1, deck size] and ``typing_ratio`` to
    [0, 100].

    Raises:
        AuthorizationError: ``user_id`` is not the deck owner
        ConfigurationError: The deck has no cards
    """

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        deck: Deck,
        user_id: str,
        store: CardStatusStore,
        question_count: int = 10,
        typing_ratio: int = 50,
        rng: random.Random | None = None,
    ):
        if not deck.is_owned_by(user_id):
            raise AuthorizationError(f"User {user_id} may not study deck {deck.id}")
        if not deck.cards:
            raise ConfigurationError("This deck has no cards")

        self.deck = deck
        self.user_id = user_id
        self.store = store
        self.rng = rng
        self.question_count = max(1, min(question_count, len(deck.cards)))
        self.typing_ratio = max(0, min(typing_ratio, 100))
        self.typing_count = round_half_up(self.question_count * self.typing_ratio / 100)

        self.questions: list[QuizQuestion] = self._compose()
        self.position = 0
        self.answers: dict[str, bool] = {}
        self.last_result: AnswerResult | None = None
        self.correct_count = 0
        self.incorrect_count = 0
        self.submitted = False

    @classmethod
    def from_config(
        cls,
        deck: Deck,
        user_id: str,
        store: CardStatusStore,
        config: StudyConfig,
        rng: random.Random | None = None,
    ) -> "TestComposer":
        return cls(
            deck,
            user_id,
            store,
            question_count=config.questionCount,
            typing_ratio=config.typingRatio,
            rng=rng,
        )

    def _compose(self) -> list[QuizQuestion]:
        selected = shuffle(self.deck.cards, self.rng)[: self.question_count]

        questions = []
        for i, card in enumerate(selected):
            if i < self.typing_count:
                questions.append(QuizQuestion(card=card, type="typing"))
            else:
                choices = generate_choices(
                    card.answer, self.deck.cards, card.id, use_question_side=False, rng=self.rng
                )
                questions.append(QuizQuestion(card=card, type="choice", choices=choices))

        return shuffle(questions, self.rng)

    @property
    def current_question(self) -> QuizQuestion | None:
        if self.position >= len(self.questions):
            return None
        return self.questions[self.position]

    @property
    def finished(self) -> bool:
        return self.position >= len(self.questions)

    def answer(self, response: str) -> AnswerResult:
        """Score the current question. Nothing is persisted."""
        question = self.current_question
        if question is None:
            raise InvalidActionError("The test has no more questions")
        if self.last_result is not None:
            raise InvalidActionError("The current question has already been answered")

        is_correct = question.is_correct(response)
        self.answers[question.card.id] = is_correct
        if is_correct:
            self.correct_count += 1
        else:
            self.incorrect_count += 1

        self.last_result = AnswerResult(
            cardId=question.card.id,
            isCorrect=is_correct,
            expectedAnswer=question.card.answer,
            persisted=False,
        )
        return self.last_result

    def next(self) -> None:
        if self.current_question is None:
            raise InvalidActionError("The test has no more questions")
        if self.last_result is None:
            raise InvalidActionError("Answer the current question before moving on")
        self.position += 1
        self.last_result = None

    def build_updates(self) -> list[StatusUpdate]:
        """One update per question; attempt counts are left as stored."""
        return [
            StatusUpdate(
                cardId=question.card.id,
                isAnswered=True,
                isCorrect=self.answers.get(question.card.id, False),
            )
            for question in self.questions
        ]

    def submit(self) -> QuizSubmitResponse:
        """Commit every result with a single batch write.

        Raises:
            InvalidActionError: Questions remain, or the test was already submitted
            StoreError: The batch write failed; the test can be submitted again
        """
        if self.submitted:
            raise InvalidActionError("The test has already been submitted")
        if not self.finished:
            raise InvalidActionError("Answer every question before submitting")

        updates = self.build_updates()
        try:
            self.store.batch_set(self.deck.id, self.user_id, updates)
        except StoreError:
            logger.error(
                f"Test commit failed: user={self.user_id}, deck={self.deck.id}, updates={len(updates)}"
            )
            raise

        self.submitted = True
        logger.info(
            f"Test committed: user={self.user_id}, deck={self.deck.id}, "
            f"questions={len(self.questions)}, correct={self.correct_count}"
        )
        return QuizSubmitResponse(
            deckId=self.deck.id,
            updatedCount=len(updates),
            correctCount=self.correct_count,
            incorrectCount=self.incorrect_count,
            scoreRate=round_half_up(100 * self.correct_count / len(self.questions)),
        )

    def snapshot(self) -> QuizStateResponse:
        """Describe the test for API responses."""
        question = self.current_question
        current = None
        if question is not None:
            current = QuizQuestionView(
                cardId=question.card.id,
                type=question.type,
                prompt=question.card.question,
                choices=question.choices,
            )
        return QuizStateResponse(
            deckId=self.deck.id,
            deckTitle=self.deck.title,
            questionCount=len(self.questions),
            typingCount=self.typing_count,
            position=self.position,
            current=current,
            lastResult=self.last_result,
            correctCount=self.correct_count,
            incorrectCount=self.incorrect_count,
            finished=self.finished,
            submitted=self.submitted,
        )
