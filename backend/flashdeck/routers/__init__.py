"""API routers module."""

from .decks import router as decks_router
from .cards import router as cards_router
from .study import router as study_router
from .quiz import router as quiz_router
from .seed import router as seed_router

__all__ = [
    "decks_router",
    "cards_router",
    "study_router",
    "quiz_router",
    "seed_router",
]
