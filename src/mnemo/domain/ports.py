"""
Ports (interfaces) for card persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import Card


class CardRepository(ABC):
    """
    Port for reading and writing a learner's card collection.

    Implementations:
        - InMemoryCardRepository: dict-backed, for hosts and tests.
        - YamlCardRepository: a YAML deck file on disk.
    """

    @abstractmethod
    async def get(self, card_id: str) -> Card | None:
        """
        Fetch a single card.

        Returns:
            The stored card, or None if no card has this id.
        """
        pass

    @abstractmethod
    async def list_cards(self) -> list[Card]:
        """
        Fetch the full collection in insertion order.
        """
        pass

    @abstractmethod
    async def add(self, card: Card) -> Card:
        """
        Store a new card.

        The store assigns the id when the incoming card carries the
        placeholder id ``NEW_CARD_ID``. The stored card starts at version 0.

        Returns:
            The card as stored.
        """
        pass

    @abstractmethod
    async def save(self, card: Card, expected_version: int) -> Card:
        """
        Replace a stored card if it is still at ``expected_version``.

        Returns:
            The stored card with its version incremented.

        Raises:
            CardNotFound: if no card has this id.
            StaleCardError: if the stored version differs from expected_version.
        """
        pass

    @abstractmethod
    async def delete(self, card_id: str) -> bool:
        """
        Remove a card. Returns False if it did not exist.
        """
        pass


# Placeholder id for cards that have not been stored yet.
NEW_CARD_ID = "__new__"
