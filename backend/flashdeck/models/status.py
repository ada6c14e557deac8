"""Per-user card status records."""

from pydantic import BaseModel, Field


class CardStatus(BaseModel):
    """Mastery state of one card for one user.

    A missing record is equivalent to the defaults. ``attemptCount`` counts
    incorrect answers only.
    """

    isAnswered: bool = False
    isCorrect: bool = False
    attemptCount: int = Field(0, ge=0)


# card id -> status, scoped to one (deck, user) pair
UserStatusMap = dict[str, CardStatus]


class StatusUpdate(BaseModel):
    """One entry of a batch status write.

    When ``attemptCount`` is None the stored count is left as it is.
    """

    cardId: str
    isAnswered: bool = True
    isCorrect: bool
    attemptCount: int | None = Field(None, ge=0)

    def merge_into(self, current: CardStatus | None) -> CardStatus:
        """Apply this update on top of an existing record."""
        base = current or CardStatus()
        return CardStatus(
            isAnswered=self.isAnswered,
            isCorrect=self.isCorrect,
            attemptCount=base.attemptCount if self.attemptCount is None else self.attemptCount,
        )


class StatusDocument(BaseModel):
    """Status map of one user for one deck, as stored in Cosmos DB."""

    id: str
    deckId: str
    userId: str
    statuses: UserStatusMap = Field(default_factory=dict)

    @staticmethod
    def make_id(deck_id: str, user_id: str) -> str:
        return f"{deck_id}:{user_id}"
