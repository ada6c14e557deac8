"""Seed API router for populating sample data."""

from typing import Annotated
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from flashdeck.models import DeckCreate, CardCreate
from flashdeck.repositories import get_deck_repository
from flashdeck.auth import get_current_user, CurrentUser

router = APIRouter(prefix="/seed", tags=["seed"])


# Sample data, keyed by deck title
SAMPLE_DECKS: dict[str, list[CardCreate]] = {
    "英単語 基礎編": [
        CardCreate(question="apple", answer="りんご"),
        CardCreate(question="book", answer="本"),
        CardCreate(question="cat", answer="猫"),
        CardCreate(question="dog", answer="犬"),
        CardCreate(question="water", answer="水"),
    ],
    "日本史": [
        CardCreate(question="江戸幕府を開いた人物は？", answer="徳川家康"),
        CardCreate(question="鎌倉幕府が成立した年は？", answer="1185年（1192年説もあり）"),
        CardCreate(question="大化の改新が始まった年は？", answer="645年"),
    ],
    "プログラミング用語": [
        CardCreate(question="DRYの原則とは？", answer="Don't Repeat Yourself"),
        CardCreate(question="RESTful APIでリソースの取得に使うHTTPメソッドは？", answer="GET"),
        CardCreate(question="TypeScriptのインターフェースとは？", answer="オブジェクトの型を定義するための仕組み"),
    ],
}


class SeedResponse(BaseModel):
    """Response from seed operation."""

    message: str
    decks_created: int
    cards_created: int


@router.post("", response_model=SeedResponse, status_code=status.HTTP_201_CREATED)
async def seed_sample_data(
    user: Annotated[CurrentUser, Depends(get_current_user)]
) -> SeedResponse:
    """Seed the database with sample decks for the current user."""
    deck_repo = get_deck_repository()

    decks_created = 0
    cards_created = 0

    for title, cards in SAMPLE_DECKS.items():
        deck = deck_repo.create(DeckCreate(title=title), user.user_id)
        decks_created += 1

        created = deck_repo.add_cards(deck.id, user.user_id, cards)
        cards_created += len(created)

    return SeedResponse(
        message="Sample data created successfully",
        decks_created=decks_created,
        cards_created=cards_created,
    )
