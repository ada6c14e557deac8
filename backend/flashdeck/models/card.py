"""Card models for API requests and responses."""

from pydantic import BaseModel, Field
from uuid import uuid4


def generate_card_id() -> str:
    """Generate a new card ID."""
    return f"card-{uuid4()}"


class CardBase(BaseModel):
    """Base card model with common fields."""

    question: str = Field(..., min_length=1, max_length=2000, description="Prompt side of the card")
    answer: str = Field(..., min_length=1, max_length=2000, description="Answer side of the card")


class CardCreate(CardBase):
    """Model for creating a new card."""

    pass


class CardUpdate(BaseModel):
    """Model for updating an existing card."""

    question: str | None = Field(None, min_length=1, max_length=2000, description="Prompt side of the card")
    answer: str | None = Field(None, min_length=1, max_length=2000, description="Answer side of the card")


class Card(CardBase):
    """Card as embedded in its deck document."""

    id: str = Field(default_factory=generate_card_id, description="Identifier, unique within the deck")

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "id": "card-123e4567-e89b-12d3-a456-426614174001",
                "question": "apple",
                "answer": "りんご",
            }
        }


class CardResponse(CardBase):
    """Card response model returned by API."""

    id: str


class CardListResponse(BaseModel):
    """Response containing a list of cards."""

    cards: list[CardResponse]
    count: int
