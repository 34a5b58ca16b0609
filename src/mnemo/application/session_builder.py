"""
Session builder for bounded study sessions.

Builds ordered sessions by:
1. Taking review-due cards, most overdue first (time-sensitive)
2. Appending unseen cards in collection order
3. Truncating to the session size cap
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from mnemo.application.selector import select_due
from mnemo.domain.models import Card, StudyMode

logger = logging.getLogger(__name__)


def build_session(
    cards: Iterable[Card],
    limit: int,
    now: datetime,
    include_review: bool = True,
    include_new: bool = True,
    max_new: int | None = None,
) -> list[Card]:
    """
    Compose a study session from a learner's full collection.

    Args:
        cards: Full card collection.
        limit: Session size cap. Zero or negative yields an empty session.
        now: Current instant.
        include_review: Whether due review cards are eligible.
        include_new: Whether never-rated cards are eligible.
        max_new: Optional cap on how many new cards may enter the session.

    Returns:
        Review cards first, then new cards, at most ``limit`` long.
    """
    if limit <= 0 or not (include_review or include_new):
        return []

    cards = list(cards)
    session: list[Card] = []

    if include_review:
        session.extend(select_due(cards, StudyMode.REVIEW, now))

    if include_new:
        new_cards = select_due(cards, StudyMode.NEW, now)
        if max_new is not None:
            new_cards = new_cards[: max(0, max_new)]
        session.extend(new_cards)

    if len(session) > limit:
        logger.debug(f"Session truncated from {len(session)} to {limit} cards")
        session = session[:limit]

    return session
