"""Tests for opening-hours evaluation."""
from datetime import date

import pytest

from tripplanner.itinerary.hours import is_place_open, parse_hours_range, weekday_name
from tripplanner.itinerary.models import OpeningHours

MONDAY = date(2025, 3, 3)
FRIDAY = date(2025, 3, 7)
SUNDAY = date(2025, 3, 9)


def test_weekday_name():
    assert weekday_name(MONDAY) == "monday"
    assert weekday_name(SUNDAY) == "sunday"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("09:00-17:00", (9, 17)),
        ("9:30 - 18:00", (9, 18)),
        (None, None),
        ("", None),
        ("closed", None),
        ("09:00", None),
    ],
)
def test_parse_hours_range(value, expected):
    assert parse_hours_range(value) == expected


def test_open_within_range(make_place):
    place = make_place("museum", opening_hours=OpeningHours(monday="09:00-17:00"))
    assert is_place_open(place, MONDAY, 9) is True
    assert is_place_open(place, MONDAY, 16) is True


def test_closing_hour_is_exclusive(make_place):
    place = make_place("museum", opening_hours=OpeningHours(monday="09:00-17:00"))
    assert is_place_open(place, MONDAY, 17) is False
    assert is_place_open(place, MONDAY, 8) is False


def test_minutes_are_ignored(make_place):
    # 17:30 closing still means closed from hour 17
    place = make_place("museum", opening_hours=OpeningHours(monday="09:30-17:30"))
    assert is_place_open(place, MONDAY, 9) is True
    assert is_place_open(place, MONDAY, 17) is False


def test_closed_list_wins_over_range(make_place):
    hours = OpeningHours(friday="08:00-22:00", closed=["Friday"])
    place = make_place("mosque", opening_hours=hours)
    assert is_place_open(place, FRIDAY, 12) is False


def test_missing_day_counts_as_closed(make_place):
    place = make_place("market", opening_hours=OpeningHours(monday="08:00-12:00"))
    assert is_place_open(place, SUNDAY, 10) is False


def test_malformed_range_counts_as_closed(make_place):
    place = make_place("market", opening_hours=OpeningHours(monday="all day"))
    assert is_place_open(place, MONDAY, 10) is False


def test_overnight_range_never_open(make_place):
    place = make_place("night-market", opening_hours=OpeningHours(monday="18:00-02:00"))
    assert is_place_open(place, MONDAY, 20) is False
    assert is_place_open(place, MONDAY, 1) is False
