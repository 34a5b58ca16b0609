"""Card id generation for stores that assign ids on creation."""

from ulid import ULID


def generate_card_id() -> str:
    """Generate a sortable, collision-free card id using ULID."""
    return f"card_{ULID()}"
