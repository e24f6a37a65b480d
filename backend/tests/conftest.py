"""Pytest configuration and fixtures."""
import sys
from functools import partial
from pathlib import Path

import pytest

# Ensure backend root is on path when running pytest from repo root or backend
backend = Path(__file__).resolve().parent.parent
if str(backend) not in sys.path:
    sys.path.insert(0, str(backend))

from tripplanner.data.places_repo import init_app_db, query_places, upsert_places  # noqa: E402
from tripplanner.itinerary.models import WEEKDAYS, OpeningHours, Place  # noqa: E402

ALL_DAY = "00:00-23:59"


def open_every_day(hours: str = ALL_DAY, closed: tuple[str, ...] = ()) -> OpeningHours:
    return OpeningHours(closed=list(closed), **{d: hours for d in WEEKDAYS})


@pytest.fixture
def make_place():
    """Factory for Place with sensible defaults: open all day, 60 minutes, Langkawi coordinates."""

    def _make(place_id: str, **overrides) -> Place:
        fields = {
            "id": place_id,
            "name": place_id.replace("-", " ").title(),
            "district_id": "4",
            "tags": ["nature"],
            "avg_price": 10.0,
            "latitude": 6.35,
            "longitude": 99.80,
            "opening_hours": open_every_day(),
            "suggested_duration": 60,
            "category": "attraction",
            "popularity_score": 50.0,
            "rating": 4.0,
        }
        fields.update(overrides)
        return Place(**fields)

    return _make


@pytest.fixture
def catalog_db(tmp_path):
    """Factory: initialized app DB holding the given places; returns (db_path, query_places callable)."""

    def _build(places: list[Place]):
        db = tmp_path / "app.db"
        init_app_db(db)
        if places:
            upsert_places(db, places)
        return db, partial(query_places, db)

    return _build
