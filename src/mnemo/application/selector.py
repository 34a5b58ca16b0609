"""Due-set selection: which cards a study mode may show right now."""

from collections.abc import Iterable
from datetime import datetime, timezone

from mnemo.domain.clock import ensure_utc
from mnemo.domain.models import Card, StudyMode

# Sort key for review cards that were never given a due date.
_ALWAYS_DUE = datetime.min.replace(tzinfo=timezone.utc)


def select_due(cards: Iterable[Card], mode: StudyMode | str, now: datetime) -> list[Card]:
    """
    Filter a collection down to the cards eligible under ``mode``.

    - review: non-mastered, already-rated cards whose next review date has
      passed, most overdue first (ties broken by id).
    - new: non-mastered cards never rated, in collection order.
    - all: every card, in collection order.

    Never mutates the cards.

    Raises:
        ValueError: for an unknown mode string.
    """
    mode = StudyMode(mode)
    now = ensure_utc(now)

    if mode is StudyMode.ALL:
        return list(cards)

    if mode is StudyMode.NEW:
        return [c for c in cards if not c.mastered and c.is_new]

    due = [c for c in cards if not c.mastered and not c.is_new and c.is_due(now)]
    due.sort(key=_review_order)
    return due


def _review_order(card: Card) -> tuple[datetime, str]:
    return (card.next_review_date or _ALWAYS_DUE, card.id)
