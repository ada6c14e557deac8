"""Repositories module for data access layer."""

from .deck_repository import (
    DeckRepository,
    DeckNotFoundError,
    CardNotFoundError,
    get_deck_repository,
)
from .status_repository import (
    CardStatusStore,
    CosmosCardStatusStore,
    InMemoryCardStatusStore,
    get_status_store,
    reset_status_store,
)

__all__ = [
    "DeckRepository",
    "DeckNotFoundError",
    "CardNotFoundError",
    "get_deck_repository",
    "CardStatusStore",
    "CosmosCardStatusStore",
    "InMemoryCardStatusStore",
    "get_status_store",
    "reset_status_store",
]
