"""Card status stores: per-user, per-card mastery records.

Every store exposes the same operations (get, set, batch_set, reset, delete)
scoped by (deck_id, user_id). Writes to different cards never clobber
each other.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Protocol

from azure.core import MatchConditions
from azure.core.exceptions import AzureError
from azure.cosmos import ContainerProxy
from azure.cosmos.exceptions import (
    CosmosAccessConditionFailedError,
    CosmosResourceExistsError,
    CosmosResourceNotFoundError,
)

from flashdeck.db import get_settings, get_status_container
from flashdeck.errors import StoreError
from flashdeck.models import CardStatus, StatusDocument, StatusUpdate, UserStatusMap

logger = logging.getLogger(__name__)


class CardStatusStore(Protocol):
    """Persistence boundary consumed by the study engine and the quiz."""

    def get(self, deck_id: str, user_id: str) -> UserStatusMap: ...

    def set(self, deck_id: str, user_id: str, card_id: str, status: CardStatus) -> None: ...

    def batch_set(self, deck_id: str, user_id: str, updates: Iterable[StatusUpdate]) -> None: ...

    def reset(self, deck_id: str, user_id: str) -> None: ...

    def delete(self, deck_id: str, user_id: str) -> None: ...


def _apply_updates(statuses: UserStatusMap, updates: Iterable[StatusUpdate]) -> None:
    # Later entries for the same card win.
    for update in updates:
        statuses[update.cardId] = update.merge_into(statuses.get(update.cardId))


class CosmosCardStatusStore:
    """Status store backed by one Cosmos DB document per (deck, user).

    Partial updates are done as read-modify-write guarded by the document
    ETag; a concurrent writer makes the replace fail with 412 and the merge
    is retried on fresh data.
    """

    MAX_WRITE_ATTEMPTS = 5

    def __init__(self, container: ContainerProxy | None = None):
        self._container = container

    @property
    def container(self) -> ContainerProxy:
        """Get the container, lazily initializing if needed."""
        if self._container is None:
            self._container = get_status_container()
        return self._container

    def _read(self, deck_id: str, user_id: str) -> tuple[StatusDocument, str | None]:
        doc_id = StatusDocument.make_id(deck_id, user_id)
        try:
            item = self.container.read_item(item=doc_id, partition_key=user_id)
        except CosmosResourceNotFoundError:
            return StatusDocument(id=doc_id, deckId=deck_id, userId=user_id), None
        return StatusDocument(**item), item.get("_etag")

    def _write(self, doc: StatusDocument, etag: str | None) -> None:
        body = doc.model_dump()
        if etag is None:
            self.container.create_item(body=body)
        else:
            self.container.replace_item(
                item=doc.id,
                body=body,
                etag=etag,
                match_condition=MatchConditions.IfNotModified,
            )

    def _merge(
        self,
        deck_id: str,
        user_id: str,
        mutate: Callable[[UserStatusMap], None],
        operation: str,
    ) -> None:
        for attempt in range(1, self.MAX_WRITE_ATTEMPTS + 1):
            try:
                doc, etag = self._read(deck_id, user_id)
                mutate(doc.statuses)
                self._write(doc, etag)
                return
            except (CosmosAccessConditionFailedError, CosmosResourceExistsError):
                logger.info(
                    f"Status document changed concurrently, retrying {operation}: "
                    f"attempt={attempt}, deck={deck_id}, user={user_id}"
                )
            except AzureError as e:
                raise StoreError(f"Failed to {operation} card status: {e.message}", operation) from e

        raise StoreError(
            f"Failed to {operation} card status after {self.MAX_WRITE_ATTEMPTS} attempts",
            operation,
        )

    def get(self, deck_id: str, user_id: str) -> UserStatusMap:
        try:
            doc, _ = self._read(deck_id, user_id)
        except AzureError as e:
            raise StoreError(f"Failed to get card status: {e.message}", "get") from e
        return doc.statuses

    def set(self, deck_id: str, user_id: str, card_id: str, status: CardStatus) -> None:
        def mutate(statuses: UserStatusMap) -> None:
            statuses[card_id] = status

        self._merge(deck_id, user_id, mutate, "set")

    def batch_set(self, deck_id: str, user_id: str, updates: Iterable[StatusUpdate]) -> None:
        updates = list(updates)
        if not updates:
            return
        self._merge(deck_id, user_id, lambda statuses: _apply_updates(statuses, updates), "batch_set")

    def reset(self, deck_id: str, user_id: str) -> None:
        doc = StatusDocument(id=StatusDocument.make_id(deck_id, user_id), deckId=deck_id, userId=user_id)
        try:
            self.container.upsert_item(body=doc.model_dump())
        except AzureError as e:
            raise StoreError(f"Failed to reset card status: {e.message}", "reset") from e

    def delete(self, deck_id: str, user_id: str) -> None:
        """Remove the status document; a missing document is not an error."""
        try:
            self.container.delete_item(item=StatusDocument.make_id(deck_id, user_id), partition_key=user_id)
        except CosmosResourceNotFoundError:
            return
        except AzureError as e:
            raise StoreError(f"Failed to delete card status: {e.message}", "delete") from e


class InMemoryCardStatusStore:
    """Thread-safe status store kept in process memory.

    Used when Cosmos DB is not configured (local development) and in tests.
    """

    def __init__(self):
        self._data: dict[tuple[str, str], UserStatusMap] = {}
        self._lock = threading.Lock()

    def get(self, deck_id: str, user_id: str) -> UserStatusMap:
        with self._lock:
            statuses = self._data.get((deck_id, user_id), {})
            return {card_id: status.model_copy() for card_id, status in statuses.items()}

    def set(self, deck_id: str, user_id: str, card_id: str, status: CardStatus) -> None:
        with self._lock:
            self._data.setdefault((deck_id, user_id), {})[card_id] = status.model_copy()

    def batch_set(self, deck_id: str, user_id: str, updates: Iterable[StatusUpdate]) -> None:
        with self._lock:
            current = dict(self._data.get((deck_id, user_id), {}))
            _apply_updates(current, updates)
            self._data[(deck_id, user_id)] = current

    def reset(self, deck_id: str, user_id: str) -> None:
        with self._lock:
            self._data[(deck_id, user_id)] = {}

    def delete(self, deck_id: str, user_id: str) -> None:
        with self._lock:
            self._data.pop((deck_id, user_id), None)

    def clear(self) -> None:
        """Drop all records (for testing)."""
        with self._lock:
            self._data.clear()


# Singleton instance
_status_store: CardStatusStore | None = None


def get_status_store() -> CardStatusStore:
    """Get the card status store singleton.

    Falls back to the in-memory store when Cosmos DB is not configured.
    """
    global _status_store
    if _status_store is None:
        if get_settings().is_configured():
            _status_store = CosmosCardStatusStore()
        else:
            logger.warning("Cosmos DB not configured, card status is kept in memory only")
            _status_store = InMemoryCardStatusStore()
    return _status_store


def reset_status_store() -> None:
    """Reset the status store singleton (for testing)."""
    global _status_store
    _status_store = None
