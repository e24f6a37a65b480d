"""
Opening-hours evaluation at hour granularity.
"""
import re
from datetime import date

from tripplanner.itinerary.models import WEEKDAYS, Place

# HH:MM-HH:MM (24h); overnight ranges never match
HOURS_RANGE_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def parse_hours_range(value: str | None) -> tuple[int, int] | None:
    """Return (open_hour, close_hour) from "HH:MM-HH:MM", or None if missing or malformed."""
    if not value or not isinstance(value, str):
        return None
    m = HOURS_RANGE_PATTERN.match(value)
    if not m:
        return None
    return int(m.group(1)), int(m.group(3))


def is_place_open(place: Place, day: date, hour: int) -> bool:
    """
    True iff the place is open on day's weekday at the given hour (24h).
    A weekday in the closed list wins over any range; unknown hours count as closed.
    Minutes within the opening and closing hour are not distinguished.
    """
    name = weekday_name(day)
    hours = place.opening_hours
    if name in hours.closed:
        return False
    parsed = parse_hours_range(hours.range_for(name))
    if parsed is None:
        return False
    open_hour, close_hour = parsed
    return open_hour <= hour < close_hour
