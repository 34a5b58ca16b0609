"""
Review Service — Application layer orchestrator.

Wraps every "read card -> schedule -> write card" cycle in a per-card
critical section so a rating is applied at most once per learner action.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from mnemo.application.scheduler import ReviewScheduler
from mnemo.application.selector import select_due
from mnemo.application.session_builder import build_session
from mnemo.application.stats import (
    ProgressReport,
    ProgressSummary,
    StatisticsAggregator,
    export_progress,
    summarize,
)
from mnemo.domain.clock import Clock, SystemClock
from mnemo.domain.errors import CardNotFound, InvalidRating, StaleCardError
from mnemo.domain.models import Card, StudyMode
from mnemo.domain.ports import NEW_CARD_ID, CardRepository

logger = logging.getLogger(__name__)


class ReviewStatus(str, Enum):
    APPLIED = "applied"
    DUPLICATE = "duplicate"
    INVALID_RATING = "invalid_rating"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class ReviewOutcome:
    """
    Result of a rating submission.

    Attributes:
        status: What happened to the submission.
        card: The stored card after the call (updated when APPLIED,
            unchanged otherwise, None when NOT_FOUND).
        error: Human-readable reason when status is not APPLIED.
    """

    status: ReviewStatus
    card: Card | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is ReviewStatus.APPLIED


class ReviewService:
    """
    Application service binding the pure scheduler to a card store.

    Follows Dependency Inversion: depends on the CardRepository abstraction,
    not concrete adapter implementations.
    """

    def __init__(
        self,
        repository: CardRepository,
        clock: Clock | None = None,
        scheduler: ReviewScheduler | None = None,
        aggregator: StatisticsAggregator | None = None,
    ):
        """
        Args:
            repository: The card store (port).
            clock: Source of "now"; the system clock if not provided.
            scheduler: Optional custom scheduler; uses defaults if not provided.
            aggregator: Optional custom statistics aggregator.
        """
        self._repo = repository
        self._clock = clock or SystemClock()
        self._scheduler = scheduler or ReviewScheduler()
        self._stats = aggregator or StatisticsAggregator()
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._last_submission: dict[str, int] = {}

    @property
    def scheduler(self) -> ReviewScheduler:
        return self._scheduler

    async def submit_rating(
        self, card_id: str, quality: int, submission_id: int
    ) -> ReviewOutcome:
        """
        Apply a learner's rating to a stored card, at most once.

        Args:
            card_id: Card being rated.
            quality: Recall rating.
            submission_id: Monotonically increasing counter issued by the host
                per learner action. A repeat or older id is ignored.

        Returns:
            A ReviewOutcome; expected failures never raise.
        """
        try:
            self._scheduler.validate_quality(quality)
        except InvalidRating as e:
            logger.info(f"Rejected rating for card {card_id}: {e}")
            return ReviewOutcome(
                ReviewStatus.INVALID_RATING, await self._repo.get(card_id), str(e)
            )

        async with self._locks[card_id]:
            last = self._last_submission.get(card_id)
            if last is not None and submission_id <= last:
                logger.info(
                    f"Ignoring duplicate submission {submission_id} for card {card_id} "
                    f"(last applied {last})"
                )
                return ReviewOutcome(
                    ReviewStatus.DUPLICATE,
                    await self._repo.get(card_id),
                    f"submission {submission_id} already applied",
                )

            card = await self._repo.get(card_id)
            if card is None:
                self._forget(card_id)
                return ReviewOutcome(ReviewStatus.NOT_FOUND, None, str(CardNotFound(card_id)))

            updated = self._scheduler.schedule(card, quality, self._clock.now())

            try:
                stored = await self._repo.save(updated, expected_version=card.version)
            except StaleCardError as e:
                logger.warning(f"Rating for card {card_id} lost a write race: {e}")
                return ReviewOutcome(ReviewStatus.CONFLICT, await self._repo.get(card_id), str(e))
            except CardNotFound as e:
                self._forget(card_id)
                return ReviewOutcome(ReviewStatus.NOT_FOUND, None, str(e))

            self._last_submission[card_id] = submission_id
            return ReviewOutcome(ReviewStatus.APPLIED, stored)

    async def add_card(
        self,
        front_text: str,
        back_text: str,
        language: str | None = None,
        category: str | None = None,
    ) -> Card:
        """Create a new vocabulary card, due immediately. The store assigns its id."""
        card = self._scheduler.initialize_card(
            NEW_CARD_ID,
            front_text,
            back_text,
            self._clock.now(),
            language=language,
            category=category,
        )
        return await self._repo.add(card)

    async def set_mastered(self, card_id: str, mastered: bool = True) -> Card | None:
        """
        Toggle the user-controlled mastered flag (mark-as-learned).

        Returns:
            The stored card, or None if it does not exist.
        """
        async with self._locks[card_id]:
            card = await self._repo.get(card_id)
            if card is None:
                self._forget(card_id)
                return None
            if card.mastered == mastered:
                return card
            return await self._repo.save(replace(card, mastered=mastered), card.version)

    def _forget(self, card_id: str) -> None:
        # Per-card state is only kept for cards that exist in the store
        self._locks.pop(card_id, None)
        self._last_submission.pop(card_id, None)

    async def due_cards(self, mode: StudyMode | str = StudyMode.REVIEW) -> list[Card]:
        cards = await self._repo.list_cards()
        return select_due(cards, mode, self._clock.now())

    async def study_session(
        self,
        limit: int,
        include_review: bool = True,
        include_new: bool = True,
        max_new: int | None = None,
    ) -> list[Card]:
        cards = await self._repo.list_cards()
        return build_session(
            cards,
            limit,
            self._clock.now(),
            include_review=include_review,
            include_new=include_new,
            max_new=max_new,
        )

    async def summary(self) -> ProgressSummary:
        return summarize(await self._repo.list_cards(), self._clock.now())

    async def report(self) -> ProgressReport:
        return self._stats.report(await self._repo.list_cards(), self._clock.now())

    async def export(self) -> dict[str, Any]:
        return export_progress(await self._repo.list_cards(), self._clock.now(), self._stats)
