"""Decks API router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from flashdeck.auth import get_current_user, CurrentUser
from flashdeck.errors import ParseError, StoreError
from flashdeck.importer import parse_bulk_import
from flashdeck.models import (
    CardResponse,
    Deck,
    DeckCreate,
    DeckListResponse,
    DeckResponse,
    DeckStatsResponse,
    DeckUpdate,
    ImportResponse,
    UserStatusMap,
)
from flashdeck.repositories import get_deck_repository, get_status_store
from flashdeck.routers.common import load_owned_deck, store_unavailable
from flashdeck.study import count_answered, count_correct, get_session_store, mastery_rate, restrict_to_cards

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/decks", tags=["decks"])


class ImportRequest(BaseModel):
    """Raw JSON text, e.g. '[{"q": "apple", "a": "りんご"}]'."""

    text: str = Field(..., max_length=200_000)


def _deck_stats(deck: Deck, statuses: UserStatusMap) -> DeckStatsResponse:
    in_deck = restrict_to_cards((card.id for card in deck.cards), statuses)
    return DeckStatsResponse(
        deckId=deck.id,
        cardCount=len(deck.cards),
        masteryRate=mastery_rate(len(deck.cards), in_deck),
        answeredCount=count_answered(in_deck),
        correctCount=count_correct(in_deck),
    )


def _deck_response(deck: Deck, statuses: UserStatusMap | None = None) -> DeckResponse:
    stats = _deck_stats(deck, statuses or {})
    return DeckResponse(
        id=deck.id,
        userId=deck.userId,
        title=deck.title,
        cards=[CardResponse(**card.model_dump()) for card in deck.cards],
        createdAt=deck.createdAt,
        cardCount=stats.cardCount,
        masteryRate=stats.masteryRate,
        answeredCount=stats.answeredCount,
        correctCount=stats.correctCount,
    )


@router.get("", response_model=DeckListResponse)
async def list_decks(user: Annotated[CurrentUser, Depends(get_current_user)]) -> DeckListResponse:
    """List all decks for the current user with mastery statistics."""
    deck_repo = get_deck_repository()
    status_store = get_status_store()
    decks = deck_repo.list_by_user(user.user_id)

    deck_responses = []
    for deck in decks:
        try:
            statuses = status_store.get(deck.id, user.user_id)
        except StoreError as e:
            logger.warning(f"Deck stats unavailable: user={user.user_id}, deck={deck.id}, error={e.message}")
            statuses = {}
        deck_responses.append(_deck_response(deck, statuses))

    return DeckListResponse(decks=deck_responses, count=len(deck_responses))


@router.get("/{deck_id}", response_model=DeckResponse)
async def get_deck(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> DeckResponse:
    """Get a specific deck by ID."""
    deck = load_owned_deck(deck_id, user.user_id)
    try:
        statuses = get_status_store().get(deck_id, user.user_id)
    except StoreError as e:
        logger.warning(f"Deck stats unavailable: user={user.user_id}, deck={deck_id}, error={e.message}")
        statuses = {}
    return _deck_response(deck, statuses)


@router.get("/{deck_id}/stats", response_model=DeckStatsResponse)
async def get_deck_stats(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> DeckStatsResponse:
    """Mastery rate and answered/correct counts for the current user."""
    deck = load_owned_deck(deck_id, user.user_id)
    try:
        statuses = get_status_store().get(deck_id, user.user_id)
    except StoreError as e:
        raise store_unavailable(e)
    return _deck_stats(deck, statuses)


@router.post("", response_model=DeckResponse, status_code=status.HTTP_201_CREATED)
async def create_deck(
    deck_create: DeckCreate, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> DeckResponse:
    """Create a new, empty deck."""
    deck = get_deck_repository().create(deck_create, user.user_id)
    logger.info(f"Deck created: user={user.user_id}, deck={deck.id}")
    return _deck_response(deck)


@router.put("/{deck_id}", response_model=DeckResponse)
async def update_deck(
    deck_id: str,
    deck_update: DeckUpdate,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> DeckResponse:
    """Rename a deck."""
    load_owned_deck(deck_id, user.user_id)
    deck = get_deck_repository().update(deck_id, user.user_id, deck_update)
    return _deck_response(deck)


@router.delete("/{deck_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_deck(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> None:
    """Delete a deck, its cards and the caller's progress on it."""
    load_owned_deck(deck_id, user.user_id)
    get_deck_repository().delete(deck_id, user.user_id)
    get_session_store().discard(user.user_id, deck_id)

    try:
        get_status_store().delete(deck_id, user.user_id)
    except StoreError as e:
        logger.warning(f"Progress not cleared for deleted deck: user={user.user_id}, deck={deck_id}, error={e.message}")


@router.post("/{deck_id}/import", response_model=ImportResponse)
async def import_cards(
    deck_id: str,
    req: ImportRequest,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ImportResponse:
    """Append cards from a JSON array of {"q", "a"} objects.

    Malformed items are skipped and reported in ``failureCount``.
    """
    load_owned_deck(deck_id, user.user_id)
    try:
        parsed = parse_bulk_import(req.text)
    except ParseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    created = get_deck_repository().add_cards(deck_id, user.user_id, parsed.cards)
    get_session_store().discard(user.user_id, deck_id)

    logger.info(
        f"Cards imported: user={user.user_id}, deck={deck_id}, "
        f"added={len(created)}, failed={parsed.failure_count}"
    )
    return ImportResponse(successCount=len(created), failureCount=parsed.failure_count)
