"""
YAML Card Repository — Infrastructure adapter for deck files on disk.

A deck file is a YAML mapping with a ``cards`` list of stored card
documents (camelCase keys). Any other top-level keys are preserved.
"""

import asyncio
import logging
import os
import tempfile
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml  # type: ignore
from pydantic import ValidationError

from mnemo.domain.errors import CardNotFound, InvalidCardState, StaleCardError
from mnemo.domain.models import Card
from mnemo.domain.ports import NEW_CARD_ID, CardRepository

from .codec import decode_card, encode_card
from .ids import generate_card_id

logger = logging.getLogger(__name__)


class DeckFileError(Exception):
    """The deck file exists but cannot be read as a deck."""


class YamlCardRepository(CardRepository):
    """
    Reads the whole deck on every call and rewrites it atomically on change.

    Access within one process is serialized; cross-process safety relies on
    the per-card version check. Records found without an id are given one
    and the deck is rewritten on that first read.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def get(self, card_id: str) -> Card | None:
        async with self._lock:
            _, cards = self._load()
        return cards.get(card_id)

    async def list_cards(self) -> list[Card]:
        async with self._lock:
            _, cards = self._load()
        return list(cards.values())

    async def add(self, card: Card) -> Card:
        async with self._lock:
            meta, cards = self._load()
            card_id = generate_card_id() if card.id == NEW_CARD_ID else card.id
            if card_id in cards:
                raise ValueError(f"Card {card_id} already exists in {self.path}")

            stored = replace(card, id=card_id, version=0)
            cards[card_id] = stored
            self._dump(meta, cards)
            logger.info(f"Added card {card_id} to {self.path}")
            return stored

    async def save(self, card: Card, expected_version: int) -> Card:
        async with self._lock:
            meta, cards = self._load()
            current = cards.get(card.id)
            if current is None:
                raise CardNotFound(card.id)
            if current.version != expected_version:
                raise StaleCardError(card.id, expected_version, current.version)

            stored = replace(card, version=current.version + 1)
            cards[card.id] = stored
            self._dump(meta, cards)
            return stored

    async def delete(self, card_id: str) -> bool:
        async with self._lock:
            meta, cards = self._load()
            if cards.pop(card_id, None) is None:
                return False
            self._dump(meta, cards)
            return True

    def _load(self) -> tuple[dict[str, Any], dict[str, Card]]:
        if not self.path.exists():
            return {}, {}

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise DeckFileError(f"{self.path}: invalid YAML: {e}") from e

        if data is None:
            return {}, {}
        if not isinstance(data, dict):
            raise DeckFileError(f"{self.path}: expected a mapping with a 'cards' list")

        raw_cards = data.pop("cards", None) or []
        if not isinstance(raw_cards, list):
            raise DeckFileError(f"{self.path}: 'cards' must be a list")

        cards: dict[str, Card] = {}
        assigned = 0
        for index, doc in enumerate(raw_cards):
            if not isinstance(doc, dict):
                raise DeckFileError(f"{self.path}: card #{index} is not a mapping")
            if doc.get("id") is None or str(doc["id"]).strip() == "":
                doc = {**doc, "id": generate_card_id()}
                assigned += 1
                logger.warning(
                    f"InvalidCardState: card #{index} in {self.path} had no id, "
                    f"assigned {doc['id']}"
                )
            try:
                card = decode_card(doc)
            except (ValidationError, InvalidCardState) as e:
                raise DeckFileError(f"{self.path}: card #{index} is unreadable: {e}") from e
            if card.id in cards:
                logger.warning(f"Duplicate card id {card.id} in {self.path}; keeping the last")
            cards[card.id] = card

        # Assigned ids must survive to the next read
        if assigned:
            self._dump(data, cards)

        return data, cards

    def _dump(self, meta: dict[str, Any], cards: dict[str, Card]) -> None:
        document = {**meta, "cards": [encode_card(c) for c in cards.values()]}
        text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
