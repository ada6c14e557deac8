"""Repository for Deck and embedded Card CRUD operations."""

from azure.cosmos import ContainerProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

from flashdeck.db import get_decks_container
from flashdeck.errors import AuthorizationError
from flashdeck.models import Card, CardCreate, CardUpdate, Deck, DeckCreate, DeckUpdate


class DeckNotFoundError(Exception):
    """Raised when a deck is not found."""

    pass


class CardNotFoundError(Exception):
    """Raised when a card is not found in its deck."""

    pass


class DeckRepository:
    """Repository for Deck database operations.

    Cards live inside the deck document, so every card mutation replaces
    the deck.
    """

    def __init__(self, container: ContainerProxy | None = None):
        """Initialize the repository with an optional container."""
        self._container = container

    @property
    def container(self) -> ContainerProxy:
        """Get the container, lazily initializing if needed."""
        if self._container is None:
            self._container = get_decks_container()
        return self._container

    def list_by_user(self, user_id: str) -> list[Deck]:
        """List all decks for a user, newest first."""
        query = "SELECT * FROM c WHERE c.userId = @userId ORDER BY c.createdAt DESC"
        parameters = [{"name": "@userId", "value": user_id}]

        items = list(
            self.container.query_items(
                query=query,
                parameters=parameters,
                partition_key=user_id,
            )
        )
        return [Deck(**item) for item in items]

    def get_deck(self, deck_id: str) -> Deck | None:
        """Look a deck up by ID regardless of owner."""
        query = "SELECT * FROM c WHERE c.id = @deckId"
        parameters = [{"name": "@deckId", "value": deck_id}]

        items = list(
            self.container.query_items(
                query=query,
                parameters=parameters,
                enable_cross_partition_query=True,
            )
        )
        if not items:
            return None
        return Deck(**items[0])

    def get_by_id(self, deck_id: str, user_id: str) -> Deck:
        """Get a deck owned by ``user_id``.

        Raises:
            DeckNotFoundError: No deck with this ID exists
            AuthorizationError: The deck belongs to another user
        """
        deck = self.get_deck(deck_id)
        if deck is None:
            raise DeckNotFoundError(f"Deck with ID {deck_id} not found")
        if not deck.is_owned_by(user_id):
            raise AuthorizationError(f"User {user_id} may not access deck {deck_id}")
        return deck

    def create(self, deck_create: DeckCreate, user_id: str) -> Deck:
        """Create a new, empty deck."""
        deck = Deck(userId=user_id, title=deck_create.title)
        created_item = self.container.create_item(body=deck.model_dump())
        return Deck(**created_item)

    def replace(self, deck: Deck) -> Deck:
        """Replace (persist) a full deck document."""
        updated_item = self.container.replace_item(item=deck.id, body=deck.model_dump())
        return Deck(**updated_item)

    def update(self, deck_id: str, user_id: str, deck_update: DeckUpdate) -> Deck:
        """Update deck fields other than its cards."""
        existing = self.get_by_id(deck_id, user_id)

        update_data = deck_update.model_dump(exclude_unset=True)
        if not update_data:
            return existing
        for key, value in update_data.items():
            setattr(existing, key, value)
        return self.replace(existing)

    def delete(self, deck_id: str, user_id: str) -> None:
        """Delete a deck (and with it, its cards)."""
        self.get_by_id(deck_id, user_id)
        try:
            self.container.delete_item(item=deck_id, partition_key=user_id)
        except CosmosResourceNotFoundError:
            raise DeckNotFoundError(f"Deck with ID {deck_id} not found")

    def get_card(self, deck_id: str, user_id: str, card_id: str) -> Card:
        deck = self.get_by_id(deck_id, user_id)
        card = deck.find_card(card_id)
        if card is None:
            raise CardNotFoundError(f"Card with ID {card_id} not found in deck {deck_id}")
        return card

    def add_card(self, deck_id: str, user_id: str, card_create: CardCreate) -> Card:
        """Append a card to the end of the deck."""
        return self.add_cards(deck_id, user_id, [card_create])[0]

    def add_cards(self, deck_id: str, user_id: str, card_creates: list[CardCreate]) -> list[Card]:
        """Append several cards with a single deck write."""
        deck = self.get_by_id(deck_id, user_id)
        new_cards = [Card(question=c.question, answer=c.answer) for c in card_creates]
        if new_cards:
            deck.cards.extend(new_cards)
            self.replace(deck)
        return new_cards

    def update_card(self, deck_id: str, user_id: str, card_id: str, card_update: CardUpdate) -> Card:
        """Edit a card in place, keeping its position."""
        deck = self.get_by_id(deck_id, user_id)
        card = deck.find_card(card_id)
        if card is None:
            raise CardNotFoundError(f"Card with ID {card_id} not found in deck {deck_id}")

        update_data = card_update.model_dump(exclude_unset=True)
        if update_data:
            for key, value in update_data.items():
                setattr(card, key, value)
            self.replace(deck)
        return card

    def delete_card(self, deck_id: str, user_id: str, card_id: str) -> None:
        deck = self.get_by_id(deck_id, user_id)
        remaining = [card for card in deck.cards if card.id != card_id]
        if len(remaining) == len(deck.cards):
            raise CardNotFoundError(f"Card with ID {card_id} not found in deck {deck_id}")
        deck.cards = remaining
        self.replace(deck)


# Singleton instance
_deck_repository: DeckRepository | None = None


def get_deck_repository() -> DeckRepository:
    """Get the deck repository singleton."""
    global _deck_repository
    if _deck_repository is None:
        _deck_repository = DeckRepository()
    return _deck_repository
