"""Bulk card import from JSON text.

Accepted format is a JSON array of objects with ``q`` (question) and ``a``
(answer) keys::

    [{"q": "apple", "a": "りんご"}, {"q": "book", "a": "本"}]

Input that is not a JSON array is rejected as a whole. Items that are not
usable are skipped and counted as failures.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator

from flashdeck.errors import ParseError
from flashdeck.models import CardCreate

logger = logging.getLogger(__name__)


class ImportItem(BaseModel):
    """One entry of the import array."""

    q: str
    a: str

    @field_validator("q", "a", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise ValueError("must be text or a number")
        return str(value).strip()

    def to_card_create(self) -> CardCreate:
        return CardCreate(question=self.q, answer=self.a)


@dataclass
class ParsedImport:
    cards: list[CardCreate] = field(default_factory=list)
    failure_count: int = 0


def parse_bulk_import(text: str) -> ParsedImport:
    """Parse import text into cards to create.

    Raises:
        ParseError: The text is empty, not valid JSON, or not an array
    """
    if not text.strip():
        raise ParseError("Nothing to import")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e.msg}") from e

    if not isinstance(data, list):
        raise ParseError("Import data must be a JSON array")

    result = ParsedImport()
    for index, raw in enumerate(data):
        try:
            item = ImportItem.model_validate(raw)
            result.cards.append(item.to_card_create())
        except ValidationError as e:
            logger.info(f"Skipping import item {index}: {e.errors()[0]['msg']}")
            result.failure_count += 1

    return result
