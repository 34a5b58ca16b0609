"""Progress export: a JSON-ready snapshot of a learner's collection."""

from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime
from typing import Any

from mnemo.domain.clock import ensure_utc
from mnemo.domain.models import Card, CardStage

from .aggregator import StatisticsAggregator


def export_progress(
    cards: Iterable[Card],
    now: datetime,
    aggregator: StatisticsAggregator | None = None,
) -> dict[str, Any]:
    cards = list(cards)
    now = ensure_utc(now)
    report = (aggregator or StatisticsAggregator()).report(cards, now)

    return {
        "exportDate": now.isoformat(),
        "totalCards": len(cards),
        "statistics": {_camel(k): v for k, v in asdict(report).items()},
        "cardProgress": [_card_progress(c) for c in cards],
    }


def _card_progress(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "frontText": card.front_text,
        "backText": card.back_text,
        "easinessFactor": card.easiness_factor,
        "repetitionNumber": card.repetition_number,
        "interval": card.interval,
        "nextReviewDate": card.next_review_date.isoformat() if card.next_review_date else None,
        "averageQuality": card.average_quality,
        "totalReviews": card.total_reviews,
        "isMatured": card.stage is CardStage.MATURED,
    }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)
