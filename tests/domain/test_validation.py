import logging
from datetime import datetime, timezone

import pytest

from mnemo.domain.errors import InvalidCardState
from mnemo.domain.validation import coerce_card, parse_timestamp

JAN_1 = datetime(2024, 1, 1, tzinfo=timezone.utc)


# ---------- Timestamps ----------


@pytest.mark.parametrize(
    "value",
    [
        JAN_1,
        datetime(2024, 1, 1),
        "2024-01-01T00:00:00+00:00",
        "2024-01-01T00:00:00Z",
        "2024-01-01T01:00:00+01:00",
        1704067200,
        1704067200.0,
        {"seconds": 1704067200, "nanoseconds": 0},
        {"_seconds": 1704067200},
    ],
)
def test_parse_timestamp_shapes(value):
    assert parse_timestamp(value) == JAN_1


@pytest.mark.parametrize("value", [None, ""])
def test_parse_timestamp_empty(value):
    assert parse_timestamp(value) is None


@pytest.mark.parametrize("value", ["yesterday", {"nanos": 3}, True, [2024], float("nan")])
def test_parse_timestamp_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_timestamp(value)


# ---------- Card coercion ----------


def test_clean_record_passes_silently(caplog):
    with caplog.at_level(logging.WARNING):
        card = coerce_card(
            {
                "id": "a",
                "front_text": "hola",
                "back_text": "hello",
                "easiness_factor": 2.1,
                "repetition_number": 3,
                "interval": 15,
                "next_review_date": "2024-01-01T00:00:00Z",
                "is_new": False,
            }
        )

    assert card.easiness_factor == 2.1
    assert card.next_review_date == JAN_1
    assert card.is_new is False
    assert caplog.records == []


def test_missing_fields_take_creation_defaults():
    card = coerce_card({"id": 42})

    assert card.id == "42"
    assert card.easiness_factor == 2.5
    assert card.interval == 1
    assert card.is_new is True
    assert card.front_text == ""


def test_corrupt_values_are_clamped_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="mnemo.domain.validation"):
        card = coerce_card(
            {
                "id": "bad",
                "easiness_factor": 0.9,
                "repetition_number": -2,
                "interval": -5,
                "next_review_date": "not a date",
            }
        )

    assert card.easiness_factor == 1.3
    assert card.repetition_number == 0
    assert card.interval == 0
    assert card.next_review_date is None
    assert len(caplog.records) == 1
    message = caplog.records[0].getMessage()
    assert "InvalidCardState" in message
    assert "bad" in message
    assert "easiness_factor" in message


@pytest.mark.parametrize("raw", ["abc", float("inf"), float("nan")])
def test_unreadable_easiness_falls_back_to_default(raw):
    assert coerce_card({"id": "a", "easiness_factor": raw}).easiness_factor == 2.5


def test_history_entries(caplog):
    with caplog.at_level(logging.WARNING):
        card = coerce_card(
            {
                "id": "a",
                "quality_history": [
                    {"quality": 4, "date": "2024-01-01T00:00:00Z"},
                    {"quality": 5, "reviewedAt": {"seconds": 1704067200}},
                    {"quality": "x", "date": "2024-01-01T00:00:00Z"},
                    "garbage",
                ],
            }
        )

    assert [r.quality for r in card.quality_history] == [4, 5]
    assert "dropped 2" in caplog.text


@pytest.mark.parametrize("fields", [{}, {"id": None}, {"id": "  "}])
def test_missing_id_is_irreparable(fields):
    with pytest.raises(InvalidCardState):
        coerce_card(fields)


@pytest.mark.parametrize("field", ["is_new", "mastered", "quality_history"])
def test_null_fields_take_defaults(field, caplog):
    with caplog.at_level(logging.WARNING):
        card = coerce_card({"id": "a", field: None})

    assert card.is_new is True
    assert card.mastered is False
    assert card.quality_history == ()
    assert caplog.records == []


@pytest.mark.parametrize(
    "raw,expected", [(False, False), (0, False), ("false", False), ("Yes", True), (1, True)]
)
def test_flag_spellings(raw, expected):
    assert coerce_card({"id": "a", "mastered": raw}).mastered is expected


def test_unreadable_flags_and_history_are_repaired(caplog):
    with caplog.at_level(logging.WARNING):
        card = coerce_card(
            {"id": "a", "is_new": "maybe", "mastered": 7, "quality_history": "oops"}
        )

    assert card.is_new is True
    assert card.mastered is False
    assert card.quality_history == ()
    message = caplog.records[0].getMessage()
    assert "is_new='maybe' -> True" in message
    assert "mastered=7 -> False" in message
    assert "quality_history='oops' -> []" in message
