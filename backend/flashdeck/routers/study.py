"""Mastery study API router.

A study session lives in the session store under (user, deck, "study").
Every scored answer is written to the card status store right away; a
failed write is reported through ``lastResult.persisted`` instead of
failing the request.
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
    RetypeResponse,
    StudyConfig,
    StudyStartRequest,
    StudyStateResponse,
)
from flashdeck.repositories import get_status_store
from flashdeck.routers.common import load_owned_deck, store_unavailable
from flashdeck.study import MasteryEngine, get_session_store, open_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/study", tags=["study"])


def _get_engine(deck_id: str, user_id: str) -> MasteryEngine:
    session = get_session_store().get(user_id, deck_id, "study")
    if not isinstance(session, MasteryEngine):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active study session for this deck. Start a new one.",
        )
    return session


def _conflict(e: InvalidActionError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/{deck_id}/start", response_model=StudyStateResponse)
async def start_study(
    deck_id: str,
    req: StudyStartRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> StudyStateResponse:
    """Start (or restart) mastery study, resuming from the stored progress."""
    deck = load_owned_deck(deck_id, user.user_id)
    config = StudyConfig(
        direction=req.direction,
        shuffle=req.shuffle,
        mode="continue",
        questionType=req.questionType,
    )

    try:
        engine = open_session(deck, user.user_id, get_status_store(), config)
    except ConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except StoreError as e:
        raise store_unavailable(e)

    get_session_store().put(user.user_id, deck_id, "study", engine)
    return engine.snapshot()


@router.get("/{deck_id}", response_model=StudyStateResponse)
async def get_study_state(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> StudyStateResponse:
    """Current state of the live study session."""
    return _get_engine(deck_id, user.user_id).snapshot()


@router.post("/{deck_id}/answer", response_model=AnswerResult)
async def answer_card(
    deck_id: str,
    req: AnswerRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> AnswerResult:
    """Score the current card and record its status."""
    engine = _get_engine(deck_id, user.user_id)
    try:
        return engine.answer(req.response)
    except InvalidActionError as e:
        raise _conflict(e)


@router.post("/{deck_id}/retype", response_model=RetypeResponse)
async def retype_answer(
    deck_id: str,
    req: AnswerRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> RetypeResponse:
    """Re-enter the correct answer after a typing miss."""
    engine = _get_engine(deck_id, user.user_id)
    try:
        accepted = engine.retype(req.response)
    except InvalidActionError as e:
        raise _conflict(e)
    return RetypeResponse(accepted=accepted, retypePending=engine.retype_pending)


@router.post("/{deck_id}/advance", response_model=StudyStateResponse)
async def advance_study(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> StudyStateResponse:
    """Move to the next card, or on to the next round."""
    engine = _get_engine(deck_id, user.user_id)
    try:
        engine.advance()
    except InvalidActionError as e:
        raise _conflict(e)
    except StoreError as e:
        raise store_unavailable(e)
    return engine.snapshot()


@router.post("/{deck_id}/reset", response_model=StudyStateResponse)
async def reset_study(
    deck_id: str,
    user: Annotated[CurrentUser, Depends(get_current_user)],
    req: StudyStartRequest | None = None,
) -> StudyStateResponse:
    """Clear all progress on the deck and restart at round 1.

    Without a live session a new one is opened with the given options.
    """
    session_store = get_session_store()
    engine = session_store.get(user.user_id, deck_id, "study")

    if not isinstance(engine, MasteryEngine):
        deck = load_owned_deck(deck_id, user.user_id)
        req = req or StudyStartRequest()
        try:
            engine = MasteryEngine(
                deck,
                user.user_id,
                get_status_store(),
                direction=req.direction,
                shuffle=req.shuffle,
                question_type=req.questionType,
            )
        except ConfigurationError as e:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    try:
        engine.reset()
    except StoreError as e:
        raise store_unavailable(e)

    session_store.put(user.user_id, deck_id, "study", engine)
    return engine.snapshot()
