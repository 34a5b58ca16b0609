"""
In-memory Card Repository.

Holds a single collection in insertion order. Suitable for hosts that keep
their own persistence, and for tests.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace

from mnemo.domain.errors import CardNotFound, StaleCardError
from mnemo.domain.models import Card
from mnemo.domain.ports import NEW_CARD_ID, CardRepository

from .ids import generate_card_id

logger = logging.getLogger(__name__)


class InMemoryCardRepository(CardRepository):
    def __init__(self, cards: Iterable[Card] = ()):
        self._cards: dict[str, Card] = {}
        for card in cards:
            self._cards[card.id] = card

    async def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    async def list_cards(self) -> list[Card]:
        return list(self._cards.values())

    async def add(self, card: Card) -> Card:
        card_id = card.id
        if card_id == NEW_CARD_ID:
            card_id = generate_card_id()
        if card_id in self._cards:
            raise ValueError(f"Card {card_id} already exists")

        stored = replace(card, id=card_id, version=0)
        self._cards[card_id] = stored
        logger.debug(f"Added card {card_id}")
        return stored

    async def save(self, card: Card, expected_version: int) -> Card:
        current = self._cards.get(card.id)
        if current is None:
            raise CardNotFound(card.id)
        if current.version != expected_version:
            raise StaleCardError(card.id, expected_version, current.version)

        stored = replace(card, version=current.version + 1)
        self._cards[card.id] = stored
        return stored

    async def delete(self, card_id: str) -> bool:
        return self._cards.pop(card_id, None) is not None
