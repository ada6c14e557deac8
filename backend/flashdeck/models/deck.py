"""Deck models for API requests and responses."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field
from uuid import uuid4

from flashdeck.models.card import Card, CardResponse


def generate_uuid() -> str:
    """Generate a new UUID string."""
    return str(uuid4())


def now_iso() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class DeckBase(BaseModel):
    """Base deck model with common fields."""

    title: str = Field(..., min_length=1, max_length=200, description="Title of the deck")


class DeckCreate(DeckBase):
    """Model for creating a new deck."""

    pass


class DeckUpdate(BaseModel):
    """Model for updating an existing deck.

    Cards are edited through the cards endpoints, never through the deck.
    """

    title: str | None = Field(None, min_length=1, max_length=200, description="Title of the deck")


class Deck(DeckBase):
    """Full deck model as stored in the database."""

    id: str = Field(default_factory=generate_uuid, description="Unique identifier")
    userId: str = Field(..., description="Owner user ID (partition key)")
    cards: list[Card] = Field(default_factory=list, description="Cards in study order")
    createdAt: str = Field(default_factory=now_iso, description="Creation timestamp")

    def is_owned_by(self, user_id: str) -> bool:
        return self.userId == user_id

    def find_card(self, card_id: str) -> Card | None:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "userId": "user-001",
                "title": "English Basics",
                "cards": [{"id": "card-1", "question": "apple", "answer": "りんご"}],
                "createdAt": "2026-02-01T00:00:00Z",
            }
        }


class DeckResponse(DeckBase):
    """Deck response model returned by API."""

    id: str
    userId: str
    cards: list[CardResponse]
    createdAt: str

    cardCount: int = 0
    masteryRate: int = 0
    answeredCount: int = 0
    correctCount: int = 0


class DeckListResponse(BaseModel):
    """Response containing a list of decks."""

    decks: list[DeckResponse]
    count: int


class DeckStatsResponse(BaseModel):
    """Mastery statistics of one deck for the current user."""

    deckId: str
    cardCount: int
    masteryRate: int = Field(..., ge=0, le=100)
    answeredCount: int
    correctCount: int


class ImportResponse(BaseModel):
    """Result of a bulk card import."""

    successCount: int
    failureCount: int
