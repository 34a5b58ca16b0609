"""
Domain models for the scheduling engine.

These are pure data structures with no I/O or external dependencies.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

from .clock import ensure_utc
from .constants import (
    DEFAULT_EASINESS_FACTOR,
    INITIAL_INTERVAL,
    LEARNING_REPETITIONS,
    MATURE_AVERAGE_QUALITY,
    MATURE_REPETITIONS,
    MIN_EASINESS_FACTOR,
    PASS_THRESHOLD,
)
from .errors import InvalidCardState


class StudyMode(str, Enum):
    REVIEW = "review"
    NEW = "new"
    ALL = "all"


class CardStage(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MATURED = "matured"


class QualityRating(IntEnum):
    """Classic six-point SM-2 recall scale."""

    BLACKOUT = 0
    INCORRECT = 1
    INCORRECT_FAMILIAR = 2
    CORRECT_DIFFICULT = 3
    CORRECT_HESITANT = 4
    PERFECT = 5


@dataclass(frozen=True)
class RatingOption:
    value: int
    label: str
    description: str
    passing: bool


_RATING_TEXT = {
    QualityRating.BLACKOUT: ("Again", "Complete blackout"),
    QualityRating.INCORRECT: ("Wrong", "Incorrect, but the answer felt familiar"),
    QualityRating.INCORRECT_FAMILIAR: ("Almost", "Incorrect, but the answer seemed easy to remember"),
    QualityRating.CORRECT_DIFFICULT: ("Hard", "Correct, with significant effort"),
    QualityRating.CORRECT_HESITANT: ("Good", "Correct, after some hesitation"),
    QualityRating.PERFECT: ("Easy", "Perfect recall"),
}


def rating_options(pass_threshold: int = PASS_THRESHOLD) -> list[RatingOption]:
    """Label catalogue for rating controls, lowest quality first."""
    return [
        RatingOption(
            value=int(rating),
            label=_RATING_TEXT[rating][0],
            description=_RATING_TEXT[rating][1],
            passing=rating >= pass_threshold,
        )
        for rating in QualityRating
    ]


@dataclass(frozen=True)
class ReviewRecord:
    """
    A single rating applied to a card.

    Attributes:
        quality: Rating given by the learner.
        reviewed_at: Instant the rating was recorded.
    """

    quality: int
    reviewed_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "reviewed_at", ensure_utc(self.reviewed_at))


@dataclass(frozen=True)
class Card:
    """
    A vocabulary card and its scheduling state.

    Construction validates the scheduling invariants and raises
    InvalidCardState on violation. Untrusted data should go through
    ``mnemo.domain.validation.coerce_card`` instead, which repairs and logs.
    """

    id: str

    # Content (opaque to the scheduler)
    front_text: str = ""
    back_text: str = ""
    language: str | None = None
    category: str | None = None

    # SM-2 state
    easiness_factor: float = DEFAULT_EASINESS_FACTOR
    repetition_number: int = 0
    interval: int = INITIAL_INTERVAL  # days
    next_review_date: datetime | None = None  # None = due immediately
    last_review_date: datetime | None = None
    is_new: bool = True

    # User flag, independent of scheduling state
    mastered: bool = False

    # Performance tracking
    total_reviews: int = 0
    correct_streak: int = 0
    incorrect_count: int = 0
    quality_history: tuple[ReviewRecord, ...] = field(default_factory=tuple)

    # Store-owned optimistic concurrency counter
    version: int = 0

    def __post_init__(self):
        if not self.id:
            raise InvalidCardState("card id must be a non-empty string")
        if not math.isfinite(self.easiness_factor) or self.easiness_factor < MIN_EASINESS_FACTOR:
            raise InvalidCardState(
                f"easiness_factor {self.easiness_factor} is below {MIN_EASINESS_FACTOR}",
                self.id,
            )
        for name in (
            "repetition_number",
            "interval",
            "total_reviews",
            "correct_streak",
            "incorrect_count",
            "version",
        ):
            if getattr(self, name) < 0:
                raise InvalidCardState(f"{name} must be non-negative", self.id)

        if self.next_review_date is not None:
            object.__setattr__(self, "next_review_date", ensure_utc(self.next_review_date))
        if self.last_review_date is not None:
            object.__setattr__(self, "last_review_date", ensure_utc(self.last_review_date))
        if not isinstance(self.quality_history, tuple):
            object.__setattr__(self, "quality_history", tuple(self.quality_history))

    @property
    def average_quality(self) -> float:
        if not self.quality_history:
            return 0.0
        return sum(r.quality for r in self.quality_history) / len(self.quality_history)

    @property
    def stage(self) -> CardStage:
        if self.is_new:
            return CardStage.NEW
        if (
            self.repetition_number >= MATURE_REPETITIONS
            and self.average_quality >= MATURE_AVERAGE_QUALITY
        ):
            return CardStage.MATURED
        if self.repetition_number < LEARNING_REPETITIONS:
            return CardStage.LEARNING
        return CardStage.REVIEW

    def is_due(self, now: datetime) -> bool:
        return self.next_review_date is None or self.next_review_date <= ensure_utc(now)
