"""Tests for lunch venue lookup."""
from datetime import datetime

from tripplanner.itinerary.dining import DINING_LOOKUP_LIMIT, find_nearby_dining
from tripplanner.itinerary.models import OpeningHours

MONDAY_LUNCH = datetime(2025, 3, 3, 13, 0)


def test_picks_closest_to_anchor(make_place, catalog_db):
    anchor = make_place("beach", latitude=6.30, longitude=99.80)
    _, query = catalog_db([
        make_place("far", category="dining", latitude=6.45, longitude=99.80, rating=4.9),
        make_place("near", category="dining", latitude=6.301, longitude=99.80, rating=4.0),
    ])
    venue = find_nearby_dining("4", anchor, query_places=query)
    assert venue is not None and venue.id == "near"


def test_none_when_no_dining(make_place, catalog_db):
    anchor = make_place("beach")
    _, query = catalog_db([make_place("another-beach")])
    assert find_nearby_dining("4", anchor, query_places=query) is None


def test_only_top_rated_considered(make_place, catalog_db):
    anchor = make_place("beach", latitude=6.30, longitude=99.80)
    top = [
        make_place(f"top{i}", category="dining", latitude=6.40, longitude=99.80, rating=4.5)
        for i in range(DINING_LOOKUP_LIMIT)
    ]
    # Closest venue is outside the top 10 by rating
    low = make_place("low-rated", category="dining", latitude=6.30, longitude=99.80, rating=2.0)
    _, query = catalog_db(top + [low])
    venue = find_nearby_dining("4", anchor, query_places=query)
    assert venue is not None and venue.id != "low-rated"


def test_ties_go_to_best_rated(make_place, catalog_db):
    anchor = make_place("beach")
    _, query = catalog_db([
        make_place("second", category="dining", rating=4.0),
        make_place("best", category="dining", rating=4.8),
    ])
    assert find_nearby_dining("4", anchor, query_places=query).id == "best"


def test_excluded_ids_skipped(make_place, catalog_db):
    anchor = make_place("beach")
    _, query = catalog_db([
        make_place("used", category="dining", rating=5.0),
        make_place("fresh", category="dining", rating=3.0),
    ])
    venue = find_nearby_dining("4", anchor, query_places=query, exclude_ids={"used"})
    assert venue.id == "fresh"


def test_closed_venues_skipped_when_time_given(make_place, catalog_db):
    anchor = make_place("beach")
    _, query = catalog_db([
        make_place("closed-monday", category="dining", rating=5.0,
                   opening_hours=OpeningHours(monday="10:00-22:00", closed=["monday"])),
        make_place("dinner-only", category="dining", rating=4.8,
                   opening_hours=OpeningHours(monday="18:00-23:00")),
        make_place("open", category="dining", rating=3.5,
                   opening_hours=OpeningHours(monday="11:00-15:00")),
    ])
    venue = find_nearby_dining("4", anchor, query_places=query, at=MONDAY_LUNCH)
    assert venue.id == "open"
    # Without a time every venue is eligible
    assert find_nearby_dining("4", anchor, query_places=query).id == "closed-monday"


def test_other_district_ignored(make_place, catalog_db):
    anchor = make_place("beach")
    _, query = catalog_db([make_place("kota-setar-cafe", category="dining", district_id="1")])
    assert find_nearby_dining("4", anchor, query_places=query) is None


def test_query_failure_returns_none(make_place):
    def boom(**kw):
        raise RuntimeError("catalog down")

    assert find_nearby_dining("4", make_place("beach"), query_places=boom) is None
