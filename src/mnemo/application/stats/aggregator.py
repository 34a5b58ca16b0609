"""
Statistics aggregator for progress display.

This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from mnemo.domain.clock import ensure_utc
from mnemo.domain.constants import (
    DEFAULT_EASINESS_FACTOR,
    INITIAL_INTERVAL,
    RETENTION_QUALITY,
    STREAK_LOOKBACK_DAYS,
)
from mnemo.domain.models import Card, CardStage


@dataclass(frozen=True)
class ProgressSummary:
    """
    Headline counts over a collection.

    ``review`` counts every non-mastered card in the review pipeline,
    due or not; ``due_today`` is the subset whose review date has passed.
    """

    due_today: int
    new: int
    review: int
    mastered: int
    total: int


@dataclass(frozen=True)
class ProgressReport:
    """
    Summary counts enriched with learning-stage and performance metrics.
    """

    # Headline counts
    due_today: int
    new: int
    review: int
    mastered: int
    total: int

    # Stage breakdown (non-mastered cards only)
    learning: int
    matured: int
    overdue: int  # Due before the start of today

    # Averages
    average_easiness: float
    average_interval: float
    retention_rate: float  # Percent of cards averaging a passing quality
    study_streak: int  # Consecutive days with at least one review

    @property
    def summary(self) -> ProgressSummary:
        return ProgressSummary(
            due_today=self.due_today,
            new=self.new,
            review=self.review,
            mastered=self.mastered,
            total=self.total,
        )


def summarize(cards: Iterable[Card], now: datetime) -> ProgressSummary:
    """
    Count due, new, in-review, and mastered cards in a single pass.
    """
    now = ensure_utc(now)
    due_today = new = review = mastered = total = 0

    for card in cards:
        total += 1
        if card.mastered:
            mastered += 1
        elif card.is_new:
            new += 1
        else:
            review += 1
            if card.is_due(now):
                due_today += 1

    return ProgressSummary(
        due_today=due_today, new=new, review=review, mastered=mastered, total=total
    )


class StatisticsAggregator:
    """
    Computes the full progress report from a card collection.

    Stateless and side-effect free.
    """

    def __init__(self, streak_lookback_days: int = STREAK_LOOKBACK_DAYS):
        self.streak_lookback_days = streak_lookback_days

    def summarize(self, cards: Iterable[Card], now: datetime) -> ProgressSummary:
        return summarize(cards, now)

    def report(self, cards: Iterable[Card], now: datetime) -> ProgressReport:
        cards = list(cards)
        now = ensure_utc(now)
        summary = summarize(cards, now)
        start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)

        learning = matured = overdue = 0
        for card in cards:
            if card.mastered:
                continue
            stage = card.stage
            if stage is CardStage.LEARNING:
                learning += 1
            elif stage is CardStage.MATURED:
                matured += 1
            if (
                not card.is_new
                and card.next_review_date is not None
                and card.next_review_date < start_of_today
            ):
                overdue += 1

        return ProgressReport(
            due_today=summary.due_today,
            new=summary.new,
            review=summary.review,
            mastered=summary.mastered,
            total=summary.total,
            learning=learning,
            matured=matured,
            overdue=overdue,
            average_easiness=self._average_easiness(cards),
            average_interval=self._average_interval(cards),
            retention_rate=self._retention_rate(cards),
            study_streak=self._study_streak(cards, now.date()),
        )

    def _average_easiness(self, cards: list[Card]) -> float:
        if not cards:
            return DEFAULT_EASINESS_FACTOR
        return sum(c.easiness_factor for c in cards) / len(cards)

    def _average_interval(self, cards: list[Card]) -> float:
        if not cards:
            return float(INITIAL_INTERVAL)
        return sum(c.interval for c in cards) / len(cards)

    def _retention_rate(self, cards: list[Card]) -> float:
        """
        Percentage of cards whose average rating is a passing one.

        Cards never rated average 0 and count as not retained.
        """
        if not cards:
            return 0.0
        retained = sum(1 for c in cards if c.average_quality >= RETENTION_QUALITY)
        return retained / len(cards) * 100

    def _study_streak(self, cards: list[Card], today: date) -> int:
        """
        Consecutive calendar days, ending today, with at least one review.
        """
        review_days = {c.last_review_date.date() for c in cards if c.last_review_date}
        for card in cards:
            review_days.update(r.reviewed_at.date() for r in card.quality_history)

        streak = 0
        day = today
        for _ in range(self.streak_lookback_days):
            if day not in review_days:
                break
            streak += 1
            day -= timedelta(days=1)
        return streak
