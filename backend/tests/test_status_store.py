"""Tests for the card status stores."""

from unittest.mock import MagicMock

import pytest
from azure.core import MatchConditions
from azure.core.exceptions import ServiceRequestError, ServiceResponseError
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosHttpResponseError,
    CosmosResourceNotFoundError,
)

from flashdeck.errors import StoreError
from flashdeck.models import CardStatus, StatusUpdate
from flashdeck.repositories import (
    CosmosCardStatusStore,
    InMemoryCardStatusStore,
    get_status_store,
    reset_status_store,
)
from flashdeck.db import get_settings


def _doc(statuses: dict, etag: str = "etag-1") -> dict:
    return {
        "id": "deck-1:user-1",
        "deckId": "deck-1",
        "userId": "user-1",
        "statuses": statuses,
        "_etag": etag,
    }


class TestInMemoryStore:
    def test_get_unknown_is_empty(self):
        assert InMemoryCardStatusStore().get("deck-1", "user-1") == {}

    def test_set_and_get(self):
        store = InMemoryCardStatusStore()
        store.set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=True))

        assert store.get("deck-1", "user-1")["card-1"].isCorrect is True
        assert store.get("deck-1", "user-2") == {}
        assert store.get("deck-2", "user-1") == {}

    def test_set_only_touches_one_card(self):
        store = InMemoryCardStatusStore()
        store.set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=True))
        store.set("deck-1", "user-1", "card-2", CardStatus(isAnswered=True, isCorrect=False, attemptCount=1))

        statuses = store.get("deck-1", "user-1")
        assert set(statuses) == {"card-1", "card-2"}
        assert statuses["card-1"].isCorrect is True

    def test_returned_map_is_a_copy(self):
        store = InMemoryCardStatusStore()
        store.set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=True))

        statuses = store.get("deck-1", "user-1")
        statuses["card-1"].isCorrect = False
        statuses["card-9"] = CardStatus()

        assert store.get("deck-1", "user-1") == {"card-1": CardStatus(isAnswered=True, isCorrect=True)}

    def test_batch_set_later_entries_win(self):
        store = InMemoryCardStatusStore()
        store.set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=False, attemptCount=2))
        store.batch_set(
            "deck-1",
            "user-1",
            [
                StatusUpdate(cardId="card-1", isCorrect=False),
                StatusUpdate(cardId="card-2", isCorrect=False),
                StatusUpdate(cardId="card-1", isCorrect=True),
            ],
        )

        statuses = store.get("deck-1", "user-1")
        assert statuses["card-1"] == CardStatus(isAnswered=True, isCorrect=True, attemptCount=2)
        assert statuses["card-2"] == CardStatus(isAnswered=True, isCorrect=False, attemptCount=0)

    def test_batch_set_explicit_attempt_count(self):
        store = InMemoryCardStatusStore()
        store.batch_set("deck-1", "user-1", [StatusUpdate(cardId="card-1", isCorrect=False, attemptCount=4)])
        assert store.get("deck-1", "user-1")["card-1"].attemptCount == 4

    def test_reset_is_idempotent(self):
        store = InMemoryCardStatusStore()
        store.set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=True))
        store.reset("deck-1", "user-1")
        store.reset("deck-1", "user-1")
        assert store.get("deck-1", "user-1") == {}

    def test_delete_drops_records(self):
        store = InMemoryCardStatusStore()
        store.set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=True))
        store.set("deck-1", "user-2", "card-1", CardStatus(isAnswered=True))
        store.delete("deck-1", "user-1")
        store.delete("deck-1", "user-1")

        assert store.get("deck-1", "user-1") == {}
        assert "card-1" in store.get("deck-1", "user-2")


class TestCosmosStore:
    def test_get_missing_document(self):
        container = MagicMock()
        container.read_item.side_effect = CosmosResourceNotFoundError(status_code=404, message="missing")

        assert CosmosCardStatusStore(container).get("deck-1", "user-1") == {}
        container.read_item.assert_called_once_with(item="deck-1:user-1", partition_key="user-1")

    def test_get_parses_statuses(self):
        container = MagicMock()
        container.read_item.return_value = _doc({"card-1": {"isAnswered": True, "isCorrect": True, "attemptCount": 2}})

        statuses = CosmosCardStatusStore(container).get("deck-1", "user-1")
        assert statuses == {"card-1": CardStatus(isAnswered=True, isCorrect=True, attemptCount=2)}

    def test_get_failure_raises_store_error(self):
        container = MagicMock()
        container.read_item.side_effect = CosmosHttpResponseError(status_code=503, message="unavailable")

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).get("deck-1", "user-1")
        assert exc_info.value.operation == "get"

    def test_set_creates_document_when_missing(self):
        container = MagicMock()
        container.read_item.side_effect = CosmosResourceNotFoundError(status_code=404, message="missing")

        CosmosCardStatusStore(container).set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True))

        body = container.create_item.call_args.kwargs["body"]
        assert body["id"] == "deck-1:user-1"
        assert body["userId"] == "user-1"
        assert body["statuses"]["card-1"]["isAnswered"] is True
        container.replace_item.assert_not_called()

    def test_set_replaces_with_etag(self):
        container = MagicMock()
        container.read_item.return_value = _doc({"card-2": {"isAnswered": True, "isCorrect": True, "attemptCount": 0}})

        CosmosCardStatusStore(container).set(
            "deck-1", "user-1", "card-1", CardStatus(isAnswered=True, isCorrect=False, attemptCount=1)
        )

        kwargs = container.replace_item.call_args.kwargs
        assert kwargs["etag"] == "etag-1"
        assert kwargs["match_condition"] == MatchConditions.IfNotModified
        assert set(kwargs["body"]["statuses"]) == {"card-1", "card-2"}

    def test_set_retries_on_concurrent_change(self):
        container = MagicMock()
        container.read_item.side_effect = [
            _doc({}, etag="etag-1"),
            _doc({"card-2": {"isAnswered": True, "isCorrect": True, "attemptCount": 0}}, etag="etag-2"),
        ]
        container.replace_item.side_effect = [
            CosmosAccessConditionFailedError(status_code=412, message="precondition failed"),
            None,
        ]

        CosmosCardStatusStore(container).set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True))

        assert container.replace_item.call_count == 2
        last = container.replace_item.call_args.kwargs
        assert last["etag"] == "etag-2"
        assert set(last["body"]["statuses"]) == {"card-1", "card-2"}

    def test_set_gives_up_after_max_attempts(self):
        container = MagicMock()
        container.read_item.return_value = _doc({})
        container.replace_item.side_effect = CosmosAccessConditionFailedError(
            status_code=412, message="precondition failed"
        )

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).set("deck-1", "user-1", "card-1", CardStatus())
        assert exc_info.value.operation == "set"
        assert container.replace_item.call_count == CosmosCardStatusStore.MAX_WRITE_ATTEMPTS

    def test_batch_set_single_write(self):
        container = MagicMock()
        container.read_item.return_value = _doc({"card-1": {"isAnswered": True, "isCorrect": False, "attemptCount": 3}})

        CosmosCardStatusStore(container).batch_set(
            "deck-1",
            "user-1",
            [StatusUpdate(cardId="card-1", isCorrect=True), StatusUpdate(cardId="card-2", isCorrect=False)],
        )

        container.replace_item.assert_called_once()
        statuses = container.replace_item.call_args.kwargs["body"]["statuses"]
        assert statuses["card-1"] == {"isAnswered": True, "isCorrect": True, "attemptCount": 3}
        assert statuses["card-2"]["isCorrect"] is False

    def test_batch_set_empty_is_noop(self):
        container = MagicMock()
        CosmosCardStatusStore(container).batch_set("deck-1", "user-1", [])
        container.read_item.assert_not_called()

    def test_reset_upserts_empty_document(self):
        container = MagicMock()
        CosmosCardStatusStore(container).reset("deck-1", "user-1")

        body = container.upsert_item.call_args.kwargs["body"]
        assert body["statuses"] == {}
        assert body["id"] == "deck-1:user-1"

    def test_reset_failure_raises_store_error(self):
        container = MagicMock()
        container.upsert_item.side_effect = CosmosHttpResponseError(status_code=500, message="boom")

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).reset("deck-1", "user-1")
        assert exc_info.value.operation == "reset"

    def test_get_connection_failure_raises_store_error(self):
        container = MagicMock()
        container.read_item.side_effect = ServiceRequestError("connection refused")

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).get("deck-1", "user-1")
        assert exc_info.value.operation == "get"

    def test_set_connection_failure_raises_store_error(self):
        container = MagicMock()
        container.read_item.side_effect = ServiceRequestError("connection refused")

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).set("deck-1", "user-1", "card-1", CardStatus(isAnswered=True))
        assert exc_info.value.operation == "set"
        container.replace_item.assert_not_called()

    def test_batch_set_response_failure_is_not_retried(self):
        container = MagicMock()
        container.read_item.return_value = _doc({})
        container.replace_item.side_effect = ServiceResponseError("connection reset")

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).batch_set(
                "deck-1", "user-1", [StatusUpdate(cardId="card-1", isCorrect=True)]
            )
        assert exc_info.value.operation == "batch_set"
        container.replace_item.assert_called_once()

    def test_reset_connection_failure_raises_store_error(self):
        container = MagicMock()
        container.upsert_item.side_effect = ServiceRequestError("connection refused")

        with pytest.raises(StoreError):
            CosmosCardStatusStore(container).reset("deck-1", "user-1")

    def test_delete_removes_document(self):
        container = MagicMock()
        CosmosCardStatusStore(container).delete("deck-1", "user-1")

        container.delete_item.assert_called_once_with(item="deck-1:user-1", partition_key="user-1")
        container.upsert_item.assert_not_called()

    def test_delete_missing_document(self):
        container = MagicMock()
        container.delete_item.side_effect = CosmosResourceNotFoundError(status_code=404, message="missing")

        CosmosCardStatusStore(container).delete("deck-1", "user-1")

    def test_delete_failure_raises_store_error(self):
        container = MagicMock()
        container.delete_item.side_effect = ServiceRequestError("connection refused")

        with pytest.raises(StoreError) as exc_info:
            CosmosCardStatusStore(container).delete("deck-1", "user-1")
        assert exc_info.value.operation == "delete"


class TestStoreSelection:
    @pytest.fixture(autouse=True)
    def cleanup(self):
        reset_status_store()
        get_settings.cache_clear()
        yield
        reset_status_store()
        get_settings.cache_clear()

    def test_in_memory_without_cosmos(self, monkeypatch):
        monkeypatch.delenv("COSMOS_ENDPOINT", raising=False)
        monkeypatch.setenv("COSMOS_EMULATOR", "false")

        store = get_status_store()
        assert isinstance(store, InMemoryCardStatusStore)
        assert get_status_store() is store

    def test_cosmos_when_configured(self, monkeypatch):
        monkeypatch.setenv("COSMOS_ENDPOINT", "https://test.documents.azure.com:443/")

        assert isinstance(get_status_store(), CosmosCardStatusStore)
