import logging
from datetime import datetime, timedelta, timezone

from mnemo.domain.models import ReviewRecord
from mnemo.infrastructure.adapters.codec import CardRecord, decode_card, encode_card


def test_decode_stored_document():
    document = {
        "id": "w1",
        "frontText": "bonjour",
        "backText": "hello",
        "language": "fr",
        "category": "greetings",
        "easinessFactor": 2.36,
        "repetitionNumber": 3,
        "interval": 14,
        "nextReviewDate": {"seconds": 1704067200, "nanoseconds": 0},
        "lastReviewDate": "2023-12-18T00:00:00Z",
        "isNew": False,
        "mastered": False,
        "totalReviews": 4,
        "correctStreak": 3,
        "incorrectCount": 1,
        "qualityHistory": [{"quality": 2, "date": "2023-12-01T00:00:00Z"}],
        "averageQuality": 3.5,  # derived, ignored
        "isLearning": False,
    }

    card = decode_card(document)

    assert card.id == "w1"
    assert card.front_text == "bonjour"
    assert card.category == "greetings"
    assert card.easiness_factor == 2.36
    assert card.next_review_date == datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert card.last_review_date == datetime(2023, 12, 18, tzinfo=timezone.utc)
    assert card.correct_streak == 3
    assert card.quality_history[0].quality == 2


def test_encode_uses_camel_case(make_card, now):
    card = make_card(
        id="w2",
        is_new=False,
        last_review_date=now,
        next_review_date=now + timedelta(days=6),
        quality_history=(ReviewRecord(4, now),),
    )

    document = encode_card(card)

    assert document["frontText"] == card.front_text
    assert document["isNew"] is False
    assert document["nextReviewDate"] == (now + timedelta(days=6)).isoformat()
    assert document["qualityHistory"] == [{"quality": 4, "date": now.isoformat()}]
    assert "front_text" not in document


def test_encoded_card_decodes_to_same_card(make_card, now):
    card = make_card(
        id="w3",
        is_new=False,
        repetition_number=2,
        interval=6,
        last_review_date=now,
        next_review_date=now + timedelta(days=6),
        quality_history=(ReviewRecord(5, now - timedelta(days=1)), ReviewRecord(4, now)),
        version=3,
    )

    assert decode_card(encode_card(card)) == card


def test_record_accepts_snake_case_names():
    card = CardRecord(id="s", front_text="x", easiness_factor=2.0).to_card()

    assert card.front_text == "x"
    assert card.easiness_factor == 2.0


def test_null_flags_and_history_decode_to_defaults():
    card = decode_card({"id": "n", "isNew": None, "mastered": None, "qualityHistory": None})

    assert card.is_new is True
    assert card.mastered is False
    assert card.quality_history == ()


def test_non_boolean_flags_are_repaired(caplog):
    with caplog.at_level(logging.WARNING):
        card = decode_card({"id": "n", "isNew": "false", "mastered": [1], "qualityHistory": {}})

    assert card.is_new is False
    assert card.mastered is False
    assert card.quality_history == ()
    assert "mastered=[1] -> False" in caplog.text
