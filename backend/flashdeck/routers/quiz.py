"""One-shot test API router.

Answers are kept in the live test only. The stored progress changes once,
on submit, with a single batch write.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from flashdeck.auth import CurrentUser, get_current_user
from flashdeck.errors import ConfigurationError, InvalidActionError, StoreError
from flashdeck.models import (
    AnswerRequest,
    AnswerResult,
    QuizStartRequest,
    QuizStateResponse,
    QuizSubmitResponse,
    StudyConfig,
)
from flashdeck.repositories import get_status_store
from flashdeck.routers.common import load_owned_deck, store_unavailable
from flashdeck.study import TestComposer, get_session_store, get_study_settings, open_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["quiz"])


def _get_composer(deck_id: str, user_id: str) -> TestComposer:
    session = get_session_store().get(user_id, deck_id, "quiz")
    if not isinstance(session, TestComposer):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active test for this deck. Start a new one.",
        )
    return session


@router.post("/{deck_id}/start", response_model=QuizStateResponse)
async def start_quiz(
    deck_id: str,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    req: QuizStartRequest | None = None,
) -> QuizStateResponse:
    """Compose a new test, replacing any unfinished one."""
    deck = load_owned_deck(deck_id, user.user_id)
    settings = get_study_settings()
    req = req or QuizStartRequest()

    config = StudyConfig(
        mode="fresh",
        questionCount=req.questionCount if req.questionCount is not None else settings.default_question_count,
        typingRatio=req.typingRatio if req.typingRatio is not None else settings.default_typing_ratio,
    )

    try:
        composer = open_session(deck, user.user_id, get_status_store(), config)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    get_session_store().put(user.user_id, deck_id, "quiz", composer)
    logger.info(
        f"Test started: user={user.user_id}, deck={deck_id}, "
        f"questions={composer.question_count}, typing={composer.typing_count}"
    )
    return composer.snapshot()


@router.get("/{deck_id}", response_model=QuizStateResponse)
async def get_quiz_state(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> QuizStateResponse:
    """Current state of the live test."""
    return _get_composer(deck_id, user.user_id).snapshot()


@router.post("/{deck_id}/answer", response_model=AnswerResult)
async def answer_question(
    deck_id: str,
    req: AnswerRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> AnswerResult:
    """Score the current question. Nothing is persisted yet."""
    composer = _get_composer(deck_id, user.user_id)
    try:
        return composer.answer(req.response)
    except InvalidActionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/{deck_id}/next", response_model=QuizStateResponse)
async def next_question(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> QuizStateResponse:
    composer = _get_composer(deck_id, user.user_id)
    try:
        composer.next()
    except InvalidActionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return composer.snapshot()


@router.post("/{deck_id}/submit", response_model=QuizSubmitResponse)
async def submit_quiz(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> QuizSubmitResponse:
    """Commit every result in one batch write and close the test.

    On a store failure the test stays open so it can be submitted again.
    """
    composer = _get_composer(deck_id, user.user_id)
    try:
        result = composer.submit()
    except InvalidActionError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except StoreError as e:
        raise store_unavailable(e)

    session_store = get_session_store()
    session_store.discard(user.user_id, deck_id, "quiz")
    # The mastery session no longer reflects the stored progress.
    session_store.discard(user.user_id, deck_id, "study")
    return result


@router.delete("/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_quiz(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> None:
    """Drop the live test without touching stored progress."""
    get_session_store().discard(user.user_id, deck_id, "quiz")
