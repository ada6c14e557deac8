"""Helpers shared by the API routers."""

import logging

from fastapi import HTTPException, status

from flashdeck.errors import AuthorizationError, StoreError
from flashdeck.models import Deck
from flashdeck.repositories import DeckNotFoundError, get_deck_repository

logger = logging.getLogger(__name__)


def load_owned_deck(deck_id: str, user_id: str) -> Deck:
    """Load a deck owned by the user or raise 404/403."""
    deck_repo = get_deck_repository()
    try:
        return deck_repo.get_by_id(deck_id, user_id)
    except DeckNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Deck with ID {deck_id} not found",
        )
    except AuthorizationError:
        logger.warning(f"Deck access denied: user={user_id}, deck={deck_id}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this deck",
        )


def store_unavailable(e: StoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"Study progress is temporarily unavailable ({e.operation or 'store'}). Please try again.",
    )
