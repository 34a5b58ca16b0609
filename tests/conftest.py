import os
from datetime import datetime, timedelta, timezone

import pytest

from mnemo.domain.clock import FixedClock
from mnemo.domain.models import Card

T0 = datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return T0


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def make_card():
    """Factory for cards with sensible defaults; override any field by keyword."""
    counter = iter(range(1, 10_000))

    def _make(**overrides) -> Card:
        fields = {
            "id": f"c{next(counter):03d}",
            "front_text": "la maison",
            "back_text": "the house",
            "language": "fr",
            "next_review_date": T0,
        }
        fields.update(overrides)
        return Card(**fields)

    return _make


@pytest.fixture
def review_card(make_card):
    """An already-rated card due ``days_ago`` days before T0."""

    def _make(days_ago: float = 0, **overrides) -> Card:
        fields = {
            "is_new": False,
            "repetition_number": 2,
            "interval": 6,
            "last_review_date": T0 - timedelta(days=6 + days_ago),
            "next_review_date": T0 - timedelta(days=days_ago),
        }
        fields.update(overrides)
        return make_card(**fields)

    return _make


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config lookups from the real user config
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("MNEMO_"):
            monkeypatch.delenv(key)
    return home
