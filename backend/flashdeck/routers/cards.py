"""Cards API router.

Any change to a deck's cards drops the caller's live sessions on that deck,
since they were built from the previous card list.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from flashdeck.auth import get_current_user, CurrentUser
from flashdeck.models import CardCreate, CardUpdate, CardResponse, CardListResponse
from flashdeck.repositories import CardNotFoundError, get_deck_repository
from flashdeck.routers.common import load_owned_deck
from flashdeck.study import get_session_store

router = APIRouter(prefix="/decks/{deck_id}/cards", tags=["cards"])


def _card_not_found(deck_id: str, card_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Card with ID {card_id} not found in deck {deck_id}",
    )


@router.get("", response_model=CardListResponse)
async def list_cards(
    deck_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> CardListResponse:
    """List all cards in a deck, in study order."""
    deck = load_owned_deck(deck_id, user.user_id)
    return CardListResponse(
        cards=[CardResponse(**card.model_dump()) for card in deck.cards],
        count=len(deck.cards),
    )


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(
    deck_id: str, card_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> CardResponse:
    """Get a specific card by ID."""
    deck = load_owned_deck(deck_id, user.user_id)
    card = deck.find_card(card_id)
    if card is None:
        raise _card_not_found(deck_id, card_id)
    return CardResponse(**card.model_dump())


@router.post("", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(
    deck_id: str, card_create: CardCreate, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> CardResponse:
    """Append a new card to a deck."""
    load_owned_deck(deck_id, user.user_id)
    card = get_deck_repository().add_card(deck_id, user.user_id, card_create)
    get_session_store().discard(user.user_id, deck_id)
    return CardResponse(**card.model_dump())


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(
    deck_id: str,
    card_id: str,
    card_update: CardUpdate,
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CardResponse:
    """Edit a card's question and/or answer."""
    load_owned_deck(deck_id, user.user_id)
    try:
        card = get_deck_repository().update_card(deck_id, user.user_id, card_id, card_update)
    except CardNotFoundError:
        raise _card_not_found(deck_id, card_id)
    get_session_store().discard(user.user_id, deck_id)
    return CardResponse(**card.model_dump())


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_card(
    deck_id: str, card_id: str, user: Annotated[CurrentUser, Depends(get_current_user)]
) -> None:
    """Remove a card. Its status record is kept but no longer counted."""
    load_owned_deck(deck_id, user.user_id)
    try:
        get_deck_repository().delete_card(deck_id, user.user_id, card_id)
    except CardNotFoundError:
        raise _card_not_found(deck_id, card_id)
    get_session_store().discard(user.user_id, deck_id)
