"""Error taxonomy for the scheduling engine."""


class SchedulingError(Exception):
    """Base class for every error raised by mnemo."""


class InvalidRating(SchedulingError, ValueError):
    """A quality rating outside the accepted scale. Nothing was applied."""

    def __init__(self, quality: object, minimum: int, maximum: int):
        self.quality = quality
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Invalid quality rating {quality!r}: expected an integer in [{minimum}, {maximum}]"
        )


class InvalidCardState(SchedulingError, ValueError):
    """A card record that violates the scheduling invariants."""

    def __init__(self, message: str, card_id: str | None = None):
        self.card_id = card_id
        prefix = f"Card {card_id}: " if card_id else ""
        super().__init__(f"{prefix}{message}")


class StaleCardError(SchedulingError):
    """The stored card changed since it was read (optimistic version check)."""

    def __init__(self, card_id: str, expected_version: int, actual_version: int):
        self.card_id = card_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Card {card_id} is at version {actual_version}, expected {expected_version}"
        )


class CardNotFound(SchedulingError, KeyError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card {self.card_id} not found"
