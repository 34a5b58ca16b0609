from datetime import timedelta

import pytest

from mnemo.application.stats import ProgressSummary, StatisticsAggregator, summarize
from mnemo.domain.models import ReviewRecord


@pytest.fixture
def aggregator():
    return StatisticsAggregator()


@pytest.fixture
def collection(make_card, review_card, now):
    return [
        make_card(id="new"),
        review_card(days_ago=1, id="mastered", mastered=True),
        review_card(days_ago=2, id="overdue"),
        review_card(days_ago=1 / 24, id="due-this-morning"),
        review_card(days_ago=-1, id="tomorrow"),
        review_card(days_ago=-3, id="learning", repetition_number=1, interval=1),
    ]


def test_summarize_counts(collection, now):
    assert summarize(collection, now) == ProgressSummary(
        due_today=2, new=1, review=4, mastered=1, total=6
    )


def test_summarize_empty(now):
    assert summarize([], now) == ProgressSummary(0, 0, 0, 0, 0)


def test_summarize_is_idempotent_and_read_only(collection, now):
    snapshot = list(collection)

    first = summarize(collection, now)
    second = summarize(collection, now)

    assert first == second
    assert collection == snapshot


def test_summarize_accepts_iterators(collection, now):
    assert summarize(iter(collection), now) == summarize(collection, now)


def test_report_stage_breakdown(aggregator, collection, now):
    report = aggregator.report(collection, now)

    assert report.summary == summarize(collection, now)
    assert report.learning == 1
    assert report.matured == 0
    assert report.overdue == 1
    assert report.average_easiness == pytest.approx(2.5)
    assert report.average_interval == pytest.approx(26 / 6)


def test_report_empty_defaults(aggregator, now):
    report = aggregator.report([], now)

    assert report.total == 0
    assert report.average_easiness == 2.5
    assert report.average_interval == 1.0
    assert report.retention_rate == 0.0
    assert report.study_streak == 0


def test_matured_cards(aggregator, review_card, now):
    history = tuple(
        ReviewRecord(q, now - timedelta(days=30 - i)) for i, q in enumerate([5, 5, 4, 4, 5])
    )
    matured = review_card(days_ago=-10, repetition_number=5, quality_history=history)
    struggling = review_card(
        days_ago=-10,
        repetition_number=5,
        quality_history=tuple(ReviewRecord(3, r.reviewed_at) for r in history),
    )

    report = aggregator.report([matured, struggling], now)

    assert matured.stage.value == "matured"
    assert report.matured == 1


def test_retention_rate(aggregator, make_card, now):
    cards = [
        make_card(quality_history=(ReviewRecord(4, now), ReviewRecord(4, now))),
        make_card(quality_history=(ReviewRecord(1, now), ReviewRecord(3, now))),
        make_card(),
    ]

    assert aggregator.report(cards, now).retention_rate == pytest.approx(100 / 3)


def test_study_streak_counts_consecutive_days(aggregator, review_card, now):
    cards = [
        review_card(last_review_date=now - timedelta(days=offset)) for offset in (0, 1, 2, 4)
    ]

    assert aggregator.report(cards, now).study_streak == 3


def test_study_streak_zero_without_review_today(aggregator, review_card, now):
    cards = [review_card(last_review_date=now - timedelta(days=1))]

    assert aggregator.report(cards, now).study_streak == 0


def test_study_streak_uses_history(aggregator, make_card, now):
    card = make_card(
        last_review_date=now,
        quality_history=(
            ReviewRecord(4, now - timedelta(days=1)),
            ReviewRecord(4, now),
        ),
    )

    assert aggregator.report([card], now).study_streak == 2


def test_study_streak_lookback_is_bounded(review_card, now):
    cards = [review_card(last_review_date=now - timedelta(days=d)) for d in range(10)]

    assert StatisticsAggregator(streak_lookback_days=5).report(cards, now).study_streak == 5
