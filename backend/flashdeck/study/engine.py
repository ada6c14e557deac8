"""Round-based mastery engine for the typing and multiple-choice modes.

A session walks a *working set* of cards. The first round covers the whole
deck; every later round covers exactly the cards that the status store
still reports as not correct when the previous round ends. The session is
complete once every card of the deck is marked correct.

Phases::

    loading -> round_active -> round_complete -> round_active | all_mastered
                         \\-> error (status could not be loaded)

Status writes happen on every answer. A failed write is logged and the
session carries on; the store may then lag behind the session until the
next successful write for that card.
"""

from __future__ import annotations

import logging
import random

from flashdeck.errors import AuthorizationError, ConfigurationError, InvalidActionError, StoreError
from flashdeck.models import (
    AnswerResult,
    Card,
    CardStatus,
    Deck,
    Direction,
    QuestionType,
    SessionPhase,
    StudyConfig,
    StudyPrompt,
    StudyStateResponse,
    UserStatusMap,
)
from flashdeck.repositories.status_repository import CardStatusStore
from flashdeck.study.choices import generate_choices
from flashdeck.study.shuffle import shuffle
from flashdeck.study.stats import mastery_rate, restrict_to_cards

logger = logging.getLogger(__name__)


def normalize_answer(text: str) -> str:
    """Normalize a typed answer for comparison (trimmed, case-insensitive)."""
    return text.strip().lower()


def answers_match(given: str, expected: str) -> bool:
    return normalize_answer(given) == normalize_answer(expected)


class MasteryEngine:
    """Study session that repeats incorrect cards until the deck is mastered.

    Args:
        deck: The deck to study; never modified
        user_id: The learner; must own the deck
        store: Card status store used for reads and writes
        direction: "normal" asks the question and expects the answer, "reverse" the opposite
        shuffle: Randomize the order of every working set
        question_type: "typing" (with mandatory retype on a miss) or "choice"
        rng: Optional random source for reproducible order and choices

    Raises:
        AuthorizationError: ``user_id`` is not the deck owner
        ConfigurationError: The deck is empty, or has a single card in choice mode
    """

    def __init__(
        self,
        deck: Deck,
        user_id: str,
        store: CardStatusStore,
        direction: Direction = "normal",
        shuffle: bool = False,
        question_type: QuestionType = "typing",
        rng: random.Random | None = None,
    ):
        if not deck.is_owned_by(user_id):
            raise AuthorizationError(f"User {user_id} may not study deck {deck.id}")
        if not deck.cards:
            raise ConfigurationError("This deck has no cards")
        if question_type == "choice" and len(deck.cards) < 2:
            raise ConfigurationError("Multiple-choice study needs at least 2 cards")

        self.deck = deck
        self.user_id = user_id
        self.store = store
        self.direction = direction
        self.shuffle = shuffle
        self.question_type = question_type
        self.rng = rng

        self.phase: SessionPhase = "loading"
        self.round = 1
        self.working_set: list[Card] = []
        self.position = 0
        self.correct_count = 0
        self.incorrect_count = 0
        self.session_results: dict[str, bool] = {}
        self.statuses: UserStatusMap = {}
        self.choices: list[str] | None = None
        self.last_result: AnswerResult | None = None
        self.retype_pending = False

    @classmethod
    def from_config(
        cls,
        deck: Deck,
        user_id: str,
        store: CardStatusStore,
        config: StudyConfig,
        rng: random.Random | None = None,
    ) -> "MasteryEngine":
        return cls(
            deck,
            user_id,
            store,
            direction=config.direction,
            shuffle=config.shuffle,
            question_type=config.questionType,
            rng=rng,
        )

    # -- derived state ---------------------------------------------------

    @property
    def completed(self) -> bool:
        return self.phase == "all_mastered"

    @property
    def current_card(self) -> Card | None:
        if self.phase != "round_active" or self.position >= len(self.working_set):
            return None
        return self.working_set[self.position]

    @property
    def mastery_rate(self) -> int:
        in_deck = restrict_to_cards((card.id for card in self.deck.cards), self.statuses)
        return mastery_rate(len(self.deck.cards), in_deck)

    def status_of(self, card: Card) -> CardStatus:
        return self.statuses.get(card.id) or CardStatus()

    def expected_for(self, card: Card) -> str:
        return card.question if self.direction == "reverse" else card.answer

    def prompt_for(self, card: Card) -> str:
        return card.answer if self.direction == "reverse" else card.question

    # -- transitions -----------------------------------------------------

    def initialize(self) -> None:
        """Load the status map and pick the round to resume.

        Raises:
            StoreError: The status map could not be read; the phase becomes "error"
        """
        try:
            statuses = self.store.get(self.deck.id, self.user_id)
        except StoreError:
            self.phase = "error"
            logger.error(f"Could not load card status: user={self.user_id}, deck={self.deck.id}")
            raise
        self._start_from(statuses)
        logger.info(
            f"Study session started: user={self.user_id}, deck={self.deck.id}, "
            f"phase={self.phase}, round={self.round}, position={self.position}, "
            f"type={self.question_type}, direction={self.direction}"
        )

    def answer(self, response: str) -> AnswerResult:
        """Score the current card and write its new status.

        Raises:
            InvalidActionError: No card is waiting for an answer
        """
        card = self.current_card
        if card is None:
            raise InvalidActionError(f"Cannot answer while the session is {self.phase}")
        if self.last_result is not None:
            raise InvalidActionError("The current card has already been answered")

        expected = self.expected_for(card)
        is_correct = answers_match(response, expected)
        previous = self.status_of(card)

        attempt_count = previous.attemptCount if is_correct else previous.attemptCount + 1
        new_status = CardStatus(isAnswered=True, isCorrect=is_correct, attemptCount=attempt_count)
        persisted = self._persist(card, new_status)

        if is_correct:
            self.correct_count += 1
        else:
            self.incorrect_count += 1
            self.retype_pending = self.question_type == "typing"
        self.session_results[card.id] = is_correct

        self.last_result = AnswerResult(
            cardId=card.id,
            isCorrect=is_correct,
            expectedAnswer=expected,
            attemptCount=new_status.attemptCount,
            requiresRetype=self.retype_pending,
            persisted=persisted,
        )
        return self.last_result

    def retype(self, response: str) -> bool:
        """Check the mandatory re-entry after a typing miss.

        Not scored and not persisted.
        """
        card = self.current_card
        if card is None or not self.retype_pending:
            raise InvalidActionError("No retype is pending")
        accepted = answers_match(response, self.expected_for(card))
        if accepted:
            self.retype_pending = False
        return accepted

    def advance(self) -> None:
        """Move to the next card, or finish the round.

        When the working set is exhausted the status map is re-read and the
        next round is built from every deck card that is still not correct.

        Raises:
            InvalidActionError: The current card is unanswered or awaits a retype
            StoreError: The round could not be recomputed; calling advance() again retries
        """
        if self.phase == "round_complete":
            self._complete_round()
            return
        if self.phase != "round_active":
            raise InvalidActionError(f"Cannot advance while the session is {self.phase}")
        if self.last_result is None:
            raise InvalidActionError("Answer the current card before moving on")
        if self.retype_pending:
            raise InvalidActionError("Retype the correct answer before moving on")

        if self.position + 1 < len(self.working_set):
            self.position += 1
            self.last_result = None
            self.retype_pending = False
            self._prepare_current()
            return

        self.phase = "round_complete"
        self.choices = None
        self._complete_round()

    def reset(self) -> None:
        """Clear the learner's progress on this deck and start over at round 1.

        Raises:
            StoreError: The stored status could not be cleared; the session is unchanged
        """
        self.store.reset(self.deck.id, self.user_id)
        self._start_from({})
        logger.info(f"Study progress reset: user={self.user_id}, deck={self.deck.id}")

    # -- internals -------------------------------------------------------

    def _order(self, cards: list[Card]) -> list[Card]:
        return shuffle(cards, self.rng) if self.shuffle else list(cards)

    def _start_from(self, statuses: UserStatusMap) -> None:
        self.statuses = dict(statuses)
        cards = self.deck.cards

        if all(self.status_of(card).isCorrect for card in cards):
            self._finish()
            return

        answered = [card for card in cards if self.status_of(card).isAnswered]
        unanswered = [card for card in cards if not self.status_of(card).isAnswered]

        if unanswered:
            # Resume the first pass after the cards already answered.
            self._begin_round(1, answered + self._order(unanswered), position=len(answered))
        else:
            incorrect = [card for card in cards if not self.status_of(card).isCorrect]
            self._begin_round(2, self._order(incorrect), position=0)

    def _begin_round(self, round_number: int, cards: list[Card], position: int) -> None:
        self.phase = "round_active"
        self.round = round_number
        self.working_set = cards
        self.position = position
        self.correct_count = 0
        self.incorrect_count = 0
        self.session_results = {}
        self.last_result = None
        self.retype_pending = False
        self._prepare_current()

    def _finish(self) -> None:
        self.phase = "all_mastered"
        self.working_set = []
        self.position = 0
        self.choices = None
        self.last_result = None
        self.retype_pending = False

    def _complete_round(self) -> None:
        try:
            statuses = self.store.get(self.deck.id, self.user_id)
        except StoreError:
            logger.error(
                f"Could not recompute round: user={self.user_id}, deck={self.deck.id}, round={self.round}"
            )
            raise

        self.statuses = dict(statuses)
        incorrect = [card for card in self.deck.cards if not self.status_of(card).isCorrect]

        if not incorrect:
            self._finish()
            logger.info(
                f"Deck mastered: user={self.user_id}, deck={self.deck.id}, rounds={self.round}"
            )
            return

        self._begin_round(self.round + 1, self._order(incorrect), position=0)
        logger.info(
            f"Next round: user={self.user_id}, deck={self.deck.id}, "
            f"round={self.round}, cards={len(self.working_set)}"
        )

    def _prepare_current(self) -> None:
        card = self.current_card
        if card is None or self.question_type != "choice":
            self.choices = None
            return
        self.choices = generate_choices(
            self.expected_for(card),
            self.deck.cards,
            card.id,
            use_question_side=self.direction == "reverse",
            rng=self.rng,
        )

    def _persist(self, card: Card, status: CardStatus) -> bool:
        try:
            self.store.set(self.deck.id, self.user_id, card.id, status)
        except StoreError as e:
            logger.warning(
                f"Card status write failed, continuing session: user={self.user_id}, "
                f"deck={self.deck.id}, card={card.id}, error={e.message}"
            )
            return False
        self.statuses[card.id] = status
        return True

    def snapshot(self) -> StudyStateResponse:
        """Describe the session for API responses."""
        card = self.current_card
        current = None
        if card is not None:
            current = StudyPrompt(cardId=card.id, prompt=self.prompt_for(card), choices=self.choices)

        return StudyStateResponse(
            deckId=self.deck.id,
            deckTitle=self.deck.title,
            direction=self.direction,
            questionType=self.question_type,
            phase=self.phase,
            round=self.round,
            position=self.position,
            workingSetSize=len(self.working_set),
            current=current,
            lastResult=self.last_result,
            retypePending=self.retype_pending,
            correctCount=self.correct_count,
            incorrectCount=self.incorrect_count,
            completed=self.completed,
            masteryRate=self.mastery_rate,
        )
