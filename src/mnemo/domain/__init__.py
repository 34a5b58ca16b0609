# Domain Package
from .clock import Clock, FixedClock, SystemClock
from .errors import (
    CardNotFound,
    InvalidCardState,
    InvalidRating,
    SchedulingError,
    StaleCardError,
)
from .models import (
    Card,
    CardStage,
    QualityRating,
    RatingOption,
    ReviewRecord,
    StudyMode,
    rating_options,
)
from .ports import NEW_CARD_ID, CardRepository

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "SchedulingError",
    "InvalidRating",
    "InvalidCardState",
    "StaleCardError",
    "CardNotFound",
    "Card",
    "CardStage",
    "QualityRating",
    "RatingOption",
    "ReviewRecord",
    "StudyMode",
    "rating_options",
    "CardRepository",
    "NEW_CARD_ID",
]
