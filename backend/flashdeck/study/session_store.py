"""TTL-based store for live study sessions and quizzes."""

from __future__ import annotations

import os
import random
import threading
from functools import lru_cache
from typing import Literal, Union

from cachetools import TTLCache

from flashdeck.models import Deck, StudyConfig
from flashdeck.repositories.status_repository import CardStatusStore
from flashdeck.study.composer import TestComposer
from flashdeck.study.engine import MasteryEngine


SessionKind = Literal["study", "quiz"]
StudySession = Union[MasteryEngine, TestComposer]


class StudySettings:
    """Settings for live sessions and quiz defaults."""

    def __init__(self):
        self.session_ttl_seconds = int(os.getenv("STUDY_SESSION_TTL_SECONDS", str(30 * 60)))
        self.max_sessions = int(os.getenv("STUDY_MAX_SESSIONS", "10000"))
        self.default_question_count = int(os.getenv("QUIZ_DEFAULT_QUESTION_COUNT", "10"))
        self.default_typing_ratio = int(os.getenv("QUIZ_DEFAULT_TYPING_RATIO", "50"))


@lru_cache()
def get_study_settings() -> StudySettings:
    """Get cached study settings."""
    return StudySettings()


def open_session(
    deck: Deck,
    user_id: str,
    store: CardStatusStore,
    config: StudyConfig,
    rng: random.Random | None = None,
) -> StudySession:
    """Create a session for ``config.mode``.

    "continue" resumes mastery rounds from the stored status (and loads it
    right away); "fresh" composes a one-shot test that only touches the
    store when submitted.
    """
    if config.mode == "fresh":
        return TestComposer.from_config(deck, user_id, store, config, rng=rng)

    engine = MasteryEngine.from_config(deck, user_id, store, config, rng=rng)
    engine.initialize()
    return engine


class StudySessionStore:
    """Thread-safe TTL-based session store.

    Sessions are keyed by (user_id, deck_id, kind), so a learner can have one
    mastery session and one quiz per deck. Sessions expire after TTL seconds
    of inactivity (sliding window); an expired session is simply gone.
    """

    DEFAULT_TTL_SECONDS = 30 * 60
    MAX_SESSIONS = 10000

    def __init__(self, ttl_seconds: int = DEFAULT_TTL_SECONDS, maxsize: int = MAX_SESSIONS):
        self._cache: TTLCache[tuple[str, str, str], StudySession] = TTLCache(
            maxsize=maxsize, ttl=ttl_seconds
        )
        self._lock = threading.Lock()

    def _make_key(self, user_id: str, deck_id: str, kind: SessionKind) -> tuple[str, str, str]:
        return (user_id, deck_id, kind)

    def get(self, user_id: str, deck_id: str, kind: SessionKind) -> StudySession | None:
        """Get a live session; accessing it refreshes its TTL."""
        key = self._make_key(user_id, deck_id, kind)
        with self._lock:
            session = self._cache.get(key)
            if session is not None:
                self._cache[key] = session
            return session

    def put(self, user_id: str, deck_id: str, kind: SessionKind, session: StudySession) -> None:
        """Store (or replace) a session, refreshing its TTL."""
        key = self._make_key(user_id, deck_id, kind)
        with self._lock:
            self._cache[key] = session

    def discard(self, user_id: str, deck_id: str, kind: SessionKind | None = None) -> None:
        """Drop one session kind, or every session of the user on this deck."""
        kinds: tuple[SessionKind, ...] = (kind,) if kind else ("study", "quiz")
        with self._lock:
            for k in kinds:
                self._cache.pop(self._make_key(user_id, deck_id, k), None)

    def clear(self) -> None:
        """Clear all sessions (for testing)."""
        with self._lock:
            self._cache.clear()


# Singleton instance
_session_store: StudySessionStore | None = None


def get_session_store() -> StudySessionStore:
    """Get the singleton session store instance."""
    global _session_store
    if _session_store is None:
        settings = get_study_settings()
        _session_store = StudySessionStore(
            ttl_seconds=settings.session_ttl_seconds,
            maxsize=settings.max_sessions,
        )
    return _session_store


def reset_session_store() -> None:
    """Reset the session store (for testing)."""
    global _session_store
    _session_store = None
