"""
Review scheduler: SM-2 state evolution for a single rating.

This is a pure computation module with no I/O. The caller supplies the
current instant and persists whatever card comes back.
"""

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from mnemo.domain.clock import ensure_utc
from mnemo.domain.constants import (
    DEFAULT_EASINESS_FACTOR,
    FIRST_INTERVAL,
    INITIAL_INTERVAL,
    MAX_QUALITY,
    MIN_EASINESS_FACTOR,
    MIN_QUALITY,
    PASS_THRESHOLD,
    RELEARN_INTERVAL,
    SECOND_INTERVAL,
)
from mnemo.domain.errors import InvalidRating
from mnemo.domain.models import Card, ReviewRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchedulerConfig:
    """
    Tunable constants of the SM-2 update.

    Attributes:
        pass_threshold: Lowest quality that counts as a successful recall.
        min_quality: Bottom of the rating scale.
        max_quality: Top of the rating scale (the "5" in the EF formula).
        default_easiness_factor: EF given to freshly created cards.
        min_easiness_factor: Floor applied after every update.
        initial_interval: Interval (days) given to freshly created cards.
        relearn_interval: Interval (days) after a failed recall.
        first_interval: Interval after the first successful recall in a row.
        second_interval: Interval after the second successful recall in a row.
    """

    pass_threshold: int = PASS_THRESHOLD
    min_quality: int = MIN_QUALITY
    max_quality: int = MAX_QUALITY
    default_easiness_factor: float = DEFAULT_EASINESS_FACTOR
    min_easiness_factor: float = MIN_EASINESS_FACTOR
    initial_interval: int = INITIAL_INTERVAL
    relearn_interval: int = RELEARN_INTERVAL
    first_interval: int = FIRST_INTERVAL
    second_interval: int = SECOND_INTERVAL

    def __post_init__(self):
        if self.min_quality >= self.max_quality:
            raise ValueError("min_quality must be below max_quality")
        if not self.min_quality < self.pass_threshold <= self.max_quality:
            raise ValueError(
                f"pass_threshold {self.pass_threshold} must lie in "
                f"({self.min_quality}, {self.max_quality}]"
            )
        if self.min_easiness_factor < MIN_EASINESS_FACTOR:
            raise ValueError(f"min_easiness_factor may not go below {MIN_EASINESS_FACTOR}")
        if self.default_easiness_factor < self.min_easiness_factor:
            raise ValueError("default_easiness_factor is below min_easiness_factor")
        if self.relearn_interval < 1 or self.first_interval < 1 or self.initial_interval < 0:
            raise ValueError("intervals must be positive")
        if self.second_interval <= self.first_interval:
            raise ValueError("second_interval must exceed first_interval")


DEFAULT_CONFIG = SchedulerConfig()


class ReviewScheduler:
    """
    Applies quality ratings to cards.

    Stateless and side-effect free; one instance can serve any number of
    concurrent callers.
    """

    def __init__(self, config: SchedulerConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def validate_quality(self, quality: object) -> int:
        """
        Reject anything that is not an integer on the configured scale.

        Raises:
            InvalidRating: for out-of-range or non-integer ratings.
        """
        cfg = self.config
        if isinstance(quality, bool) or not isinstance(quality, int):
            raise InvalidRating(quality, cfg.min_quality, cfg.max_quality)
        if not cfg.min_quality <= quality <= cfg.max_quality:
            raise InvalidRating(quality, cfg.min_quality, cfg.max_quality)
        return int(quality)

    def next_easiness(self, easiness_factor: float, quality: int) -> float:
        """
        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored.
        """
        gap = self.config.max_quality - quality
        ef = easiness_factor + (0.1 - gap * (0.08 + gap * 0.02))
        return max(ef, self.config.min_easiness_factor)

    def next_interval(self, repetition_number: int, interval: int, easiness_factor: float) -> int:
        """
        Interval after a successful recall.

        Args:
            repetition_number: The repetition count *after* this recall (>= 1).
            interval: The interval set by the previous scheduling.
            easiness_factor: The already-updated easiness factor.
        """
        if repetition_number == 1:
            return self.config.first_interval
        if repetition_number == 2:
            return self.config.second_interval
        # Strictly increasing even when a tiny interval would round back down
        return max(_round_half_up(interval * easiness_factor), interval + 1)

    def schedule(self, card: Card, quality: int, now: datetime) -> Card:
        """
        Compute a card's next state from a quality rating.

        Args:
            card: The card being rated. Not modified.
            quality: Learner's recall rating.
            now: Instant of the rating.

        Returns:
            A new Card carrying the updated scheduling state.

        Raises:
            InvalidRating: before anything is computed, if quality is invalid.
        """
        quality = self.validate_quality(quality)
        now = ensure_utc(now)
        cfg = self.config

        easiness = self.next_easiness(card.easiness_factor, quality)
        passed = quality >= cfg.pass_threshold

        if passed:
            repetitions = card.repetition_number + 1
            interval = self.next_interval(repetitions, card.interval, easiness)
            correct_streak = card.correct_streak + 1
            incorrect_count = card.incorrect_count
        else:
            repetitions = 0
            interval = cfg.relearn_interval
            correct_streak = 0
            incorrect_count = card.incorrect_count + 1

        logger.debug(
            f"Card {card.id}: q={quality} ef {card.easiness_factor:.2f}->{easiness:.2f} "
            f"reps {card.repetition_number}->{repetitions} "
            f"interval {card.interval}->{interval}d"
        )

        return replace(
            card,
            easiness_factor=easiness,
            repetition_number=repetitions,
            interval=interval,
            last_review_date=now,
            next_review_date=now + timedelta(days=interval),
            is_new=False,
            total_reviews=card.total_reviews + 1,
            correct_streak=correct_streak,
            incorrect_count=incorrect_count,
            quality_history=card.quality_history + (ReviewRecord(quality, now),),
        )

    def preview_intervals(self, card: Card) -> dict[int, int]:
        """
        Interval (days) each valid rating would produce, for labelling rating controls.
        """
        preview: dict[int, int] = {}
        for quality in range(self.config.min_quality, self.config.max_quality + 1):
            if quality < self.config.pass_threshold:
                preview[quality] = self.config.relearn_interval
            else:
                easiness = self.next_easiness(card.easiness_factor, quality)
                preview[quality] = self.next_interval(
                    card.repetition_number + 1, card.interval, easiness
                )
        return preview

    def initialize_card(
        self,
        card_id: str,
        front_text: str,
        back_text: str,
        now: datetime,
        language: str | None = None,
        category: str | None = None,
    ) -> Card:
        """
        Creation state for a newly added vocabulary card: due immediately.
        """
        return Card(
            id=card_id,
            front_text=front_text,
            back_text=back_text,
            language=language,
            category=category,
            easiness_factor=self.config.default_easiness_factor,
            repetition_number=0,
            interval=self.config.initial_interval,
            next_review_date=ensure_utc(now),
            last_review_date=None,
            is_new=True,
        )


def schedule_review(
    card: Card, quality: int, now: datetime, config: SchedulerConfig | None = None
) -> Card:
    """Functional shortcut for ``ReviewScheduler(config).schedule(...)``."""
    return ReviewScheduler(config).schedule(card, quality, now)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
