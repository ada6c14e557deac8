"""Pytest configuration and fixtures."""

import os
import random

import pytest

# Ensure auth is disabled during tests by default
os.environ.setdefault("AUTH_ENABLED", "false")

from flashdeck.errors import StoreError
from flashdeck.models import Card, Deck
from flashdeck.repositories import InMemoryCardStatusStore


USER_ID = "user-1"


class FakeDeckContainer:
    """In-memory stand-in for the decks ContainerProxy."""

    def __init__(self):
        self.items: dict[str, dict] = {}

    def query_items(self, query, parameters, partition_key=None, enable_cross_partition_query=None):
        values = {p["name"]: p["value"] for p in parameters}
        if "@deckId" in values:
            return [dict(item) for item in self.items.values() if item["id"] == values["@deckId"]]
        owned = [dict(item) for item in self.items.values() if item["userId"] == values["@userId"]]
        return sorted(owned, key=lambda item: item["createdAt"], reverse=True)

    def create_item(self, body):
        self.items[body["id"]] = dict(body)
        return dict(body)

    def replace_item(self, item, body):
        self.items[item] = dict(body)
        return dict(body)

    def delete_item(self, item, partition_key):
        del self.items[item]


class FailingStatusStore(InMemoryCardStatusStore):
    """In-memory store whose operations can be switched to fail."""

    def __init__(self):
        super().__init__()
        self.fail_get = False
        self.fail_set = False
        self.fail_batch = False
        self.fail_reset = False
        self.fail_delete = False
        self.batch_calls = 0

    def get(self, deck_id, user_id):
        if self.fail_get:
            raise StoreError("status read failed", operation="get")
        return super().get(deck_id, user_id)

    def set(self, deck_id, user_id, card_id, status):
        if self.fail_set:
            raise StoreError("status write failed", operation="set")
        super().set(deck_id, user_id, card_id, status)

    def batch_set(self, deck_id, user_id, updates):
        self.batch_calls += 1
        if self.fail_batch:
            raise StoreError("batch write failed", operation="batch_set")
        super().batch_set(deck_id, user_id, updates)

    def reset(self, deck_id, user_id):
        if self.fail_reset:
            raise StoreError("reset failed", operation="reset")
        super().reset(deck_id, user_id)

    def delete(self, deck_id, user_id):
        if self.fail_delete:
            raise StoreError("delete failed", operation="delete")
        super().delete(deck_id, user_id)


def make_deck(pairs, deck_id="deck-1", user_id=USER_ID, title="English Basics") -> Deck:
    """Build a deck whose cards are card-1, card-2, ... in the given order."""
    cards = [
        Card(id=f"card-{i}", question=question, answer=answer)
        for i, (question, answer) in enumerate(pairs, start=1)
    ]
    return Deck(id=deck_id, userId=user_id, title=title, cards=cards, createdAt="2026-02-01T00:00:00Z")


@pytest.fixture
def auth_disabled_env(monkeypatch):
    """Fixture that ensures AUTH_ENABLED is false."""
    monkeypatch.setenv("AUTH_ENABLED", "false")


@pytest.fixture
def auth_enabled_env(monkeypatch):
    """Fixture that enables auth with test configuration."""
    monkeypatch.setenv("AUTH_ENABLED", "true")
    monkeypatch.setenv("AUTH_ISSUER", "https://issuer.example.com")
    monkeypatch.setenv("AUTH_AUDIENCE", "api://flashdeck")
    monkeypatch.delenv("AUTH_JWKS_URI", raising=False)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def store():
    return FailingStatusStore()


@pytest.fixture
def two_card_deck():
    return make_deck([("apple", "りんご"), ("book", "本")])


@pytest.fixture
def vocab_deck():
    return make_deck(
        [
            ("apple", "りんご"),
            ("book", "本"),
            ("cat", "猫"),
            ("dog", "犬"),
            ("water", "水"),
        ]
    )


@pytest.fixture
def deck_container(monkeypatch):
    """Route the deck repository singleton to an in-memory container."""
    from flashdeck.repositories import DeckRepository, deck_repository

    container = FakeDeckContainer()
    monkeypatch.setattr(deck_repository, "_deck_repository", DeckRepository(container=container))
    return container


@pytest.fixture
def api_store(monkeypatch):
    """Status store used by the API for the duration of a test."""
    from flashdeck.repositories import status_repository

    status_store = FailingStatusStore()
    monkeypatch.setattr(status_repository, "_status_store", status_store)
    return status_store


@pytest.fixture
def client(auth_disabled_env, deck_container, api_store):
    from fastapi.testclient import TestClient

    from flashdeck.auth import get_auth_settings
    from flashdeck.main import app
    from flashdeck.study import reset_session_store

    get_auth_settings.cache_clear()
    reset_session_store()
    yield TestClient(app, headers={"X-User-Id": USER_ID})
    reset_session_store()
    get_auth_settings.cache_clear()


@pytest.fixture
def saved_deck(deck_container, two_card_deck):
    deck_container.create_item(body=two_card_deck.model_dump())
    return two_card_deck


@pytest.fixture
def saved_vocab_deck(deck_container, vocab_deck):
    deck_container.create_item(body=vocab_deck.model_dump())
    return vocab_deck
