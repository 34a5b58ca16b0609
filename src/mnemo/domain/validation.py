"""
Normalize-on-read for card data coming from outside the engine.

A corrupt record (easiness below the floor, negative counters, unreadable
timestamps) is repaired rather than rejected, and every repair is logged as
an upstream data bug. Only a missing id cannot be repaired.
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from .clock import ensure_utc
from .constants import DEFAULT_EASINESS_FACTOR, INITIAL_INTERVAL, MIN_EASINESS_FACTOR
from .errors import InvalidCardState
from .models import Card, ReviewRecord

logger = logging.getLogger(__name__)

_COUNTER_FIELDS = (
    "repetition_number",
    "interval",
    "total_reviews",
    "correct_streak",
    "incorrect_count",
    "version",
)
_COUNTER_DEFAULTS = {"interval": INITIAL_INTERVAL}
_TEXT_FIELDS = ("front_text", "back_text")
_OPTIONAL_TEXT_FIELDS = ("language", "category")
_FLAG_STRINGS = {"true": True, "yes": True, "1": True, "false": False, "no": False, "0": False}


def parse_timestamp(value: Any) -> datetime | None:
    """
    Decode a timestamp in any of the shapes card stores hand back.

    Accepts datetimes, ISO-8601 strings, epoch seconds, and document-store
    timestamp mappings (``{"seconds": ..., "nanoseconds": ...}``).

    Raises:
        ValueError: if the value cannot be interpreted.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is None:
            raise ValueError(f"timestamp mapping without seconds: {value!r}")
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
        return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"not a timestamp: {value!r}")
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return ensure_utc(datetime.fromisoformat(text))
    raise ValueError(f"not a timestamp: {value!r}")


def coerce_card(fields: Mapping[str, Any]) -> Card:
    """
    Build a Card from untrusted snake_case fields, repairing invariant violations.

    Args:
        fields: Raw values keyed by Card attribute name. Unknown keys are ignored.

    Returns:
        A valid Card.

    Raises:
        InvalidCardState: if the record has no usable id.
    """
    card_id = fields.get("id")
    if card_id is None or str(card_id).strip() == "":
        raise InvalidCardState("record has no id")
    card_id = str(card_id)

    repairs: list[str] = []
    values: dict[str, Any] = {"id": card_id}

    for name in _TEXT_FIELDS:
        raw = fields.get(name)
        values[name] = "" if raw is None else str(raw)
    for name in _OPTIONAL_TEXT_FIELDS:
        raw = fields.get(name)
        values[name] = None if raw is None else str(raw)

    values["easiness_factor"] = _coerce_easiness(fields.get("easiness_factor"), repairs)

    for name in _COUNTER_FIELDS:
        values[name] = _coerce_counter(
            name, fields.get(name), _COUNTER_DEFAULTS.get(name, 0), repairs
        )

    for name in ("next_review_date", "last_review_date"):
        try:
            values[name] = parse_timestamp(fields.get(name))
        except (TypeError, ValueError, OverflowError, OSError):
            repairs.append(f"{name}={fields.get(name)!r} -> None")
            values[name] = None

    values["is_new"] = _coerce_flag("is_new", fields.get("is_new"), True, repairs)
    values["mastered"] = _coerce_flag("mastered", fields.get("mastered"), False, repairs)
    values["quality_history"] = _coerce_history(fields.get("quality_history"), repairs)

    if repairs:
        logger.warning(
            f"InvalidCardState: repaired card {card_id} on read ({'; '.join(repairs)})"
        )

    return Card(**values)


def _coerce_easiness(raw: Any, repairs: list[str]) -> float:
    if raw is None:
        return DEFAULT_EASINESS_FACTOR
    try:
        ef = float(raw)
    except (TypeError, ValueError):
        repairs.append(f"easiness_factor={raw!r} -> {DEFAULT_EASINESS_FACTOR}")
        return DEFAULT_EASINESS_FACTOR
    if not math.isfinite(ef):
        repairs.append(f"easiness_factor={raw!r} -> {DEFAULT_EASINESS_FACTOR}")
        return DEFAULT_EASINESS_FACTOR
    if ef < MIN_EASINESS_FACTOR:
        repairs.append(f"easiness_factor={ef} -> {MIN_EASINESS_FACTOR}")
        return MIN_EASINESS_FACTOR
    return ef


def _coerce_counter(name: str, raw: Any, default: int, repairs: list[str]) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError, OverflowError):
        repairs.append(f"{name}={raw!r} -> {default}")
        return default
    if value < 0:
        repairs.append(f"{name}={value} -> 0")
        return 0
    return value


def _coerce_flag(name: str, raw: Any, default: bool, repairs: list[str]) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str) and raw.strip().lower() in _FLAG_STRINGS:
        return _FLAG_STRINGS[raw.strip().lower()]
    repairs.append(f"{name}={raw!r} -> {default}")
    return default


def _coerce_history(raw: Any, repairs: list[str]) -> tuple[ReviewRecord, ...]:
    if raw is None or raw == "":
        return ()
    if not isinstance(raw, (list, tuple)):
        repairs.append(f"quality_history={raw!r} -> []")
        return ()

    records: list[ReviewRecord] = []
    dropped = 0
    for entry in raw:
        if isinstance(entry, ReviewRecord):
            records.append(entry)
            continue
        if not isinstance(entry, Mapping):
            dropped += 1
            continue
        try:
            reviewed_at = parse_timestamp(
                entry.get("reviewed_at", entry.get("reviewedAt", entry.get("date")))
            )
            quality = int(entry["quality"])
        except (KeyError, TypeError, ValueError, OverflowError, OSError):
            dropped += 1
            continue
        if reviewed_at is None:
            dropped += 1
            continue
        records.append(ReviewRecord(quality=quality, reviewed_at=reviewed_at))

    if dropped:
        repairs.append(f"dropped {dropped} unreadable quality_history entries")
    return tuple(records)
