"""
Wire codec between stored card documents and domain Cards.

Stored documents use camelCase field names. Numeric and timestamp fields
are accepted loosely here and repaired by ``coerce_card`` on the way in.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mnemo.domain.models import Card
from mnemo.domain.validation import coerce_card


class QualityEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    quality: int
    date: Any = None


class CardRecord(BaseModel):
    """Stored shape of a card."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Any = None
    front_text: Any = Field(default=None, alias="frontText")
    back_text: Any = Field(default=None, alias="backText")
    language: Any = None
    category: Any = None

    easiness_factor: Any = Field(default=None, alias="easinessFactor")
    repetition_number: Any = Field(default=None, alias="repetitionNumber")
    interval: Any = None
    next_review_date: Any = Field(default=None, alias="nextReviewDate")
    last_review_date: Any = Field(default=None, alias="lastReviewDate")
    is_new: Any = Field(default=None, alias="isNew")
    mastered: Any = None

    total_reviews: Any = Field(default=None, alias="totalReviews")
    correct_streak: Any = Field(default=None, alias="correctStreak")
    incorrect_count: Any = Field(default=None, alias="incorrectCount")
    quality_history: Any = Field(default=None, alias="qualityHistory")

    version: Any = None

    def to_card(self) -> Card:
        """
        Raises:
            InvalidCardState: if the record has no id.
        """
        return coerce_card(self.model_dump(by_alias=False))

    @classmethod
    def from_card(cls, card: Card) -> "CardRecord":
        return cls(
            id=card.id,
            front_text=card.front_text,
            back_text=card.back_text,
            language=card.language,
            category=card.category,
            easiness_factor=card.easiness_factor,
            repetition_number=card.repetition_number,
            interval=card.interval,
            next_review_date=_iso(card.next_review_date),
            last_review_date=_iso(card.last_review_date),
            is_new=card.is_new,
            mastered=card.mastered,
            total_reviews=card.total_reviews,
            correct_streak=card.correct_streak,
            incorrect_count=card.incorrect_count,
            quality_history=[
                QualityEntry(quality=r.quality, date=_iso(r.reviewed_at)).model_dump()
                for r in card.quality_history
            ],
            version=card.version,
        )

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def decode_card(document: dict[str, Any]) -> Card:
    return CardRecord.model_validate(document).to_card()


def encode_card(card: Card) -> dict[str, Any]:
    return CardRecord.from_card(card).to_document()


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
