"""
Day-by-day scheduling of an ordered place sequence.

A single ScheduleCursor is threaded through the days: once a place is scheduled
or skipped it is never revisited. Each candidate is classified by
evaluate_candidate into a Decision; schedule_day acts on it:

  SCHEDULE           append the slot, advance the cursor
  SKIP_PERMANENTLY   advance the cursor without scheduling (closed, or already used)
  DEFER_TO_NEXT_DAY  end the day, keep the candidate for the next one
  STOP_DAY           the daily window is over, keep the candidate

Lunch is inserted once per day from 13:00 unless the current candidate is itself
a dining place.
"""
import logging
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Callable, Iterable, NamedTuple

from tripplanner.data.geo import travel_minutes
from tripplanner.itinerary.hours import is_place_open
from tripplanner.itinerary.models import DayItinerary, Place, TimeSlot, TripItinerary
from tripplanner.itinerary.routing import distance_between, order_by_proximity

logger = logging.getLogger(__name__)

DAY_START_HOUR = 9
DAY_END_HOUR = 18
LUNCH_HOUR = 13
LUNCH_DURATION_MINUTES = 60
TRAVEL_BUFFER_MINUTES = 20

# (district_id, anchor, exclude_ids=..., at=...) -> dining place or None
FindDining = Callable[..., Place | None]


class Decision(Enum):
    SCHEDULE = "schedule"
    SKIP_PERMANENTLY = "skip_permanently"
    DEFER_TO_NEXT_DAY = "defer_to_next_day"
    STOP_DAY = "stop_day"


class CandidateDecision(NamedTuple):
    decision: Decision
    start: datetime | None = None
    end: datetime | None = None
    travel_time: int | None = None


class ScheduleCursor(NamedTuple):
    """Position in the ordered sequence plus every place id already placed in a slot."""

    places: tuple[Place, ...]
    index: int = 0
    used_ids: frozenset[str] = frozenset()

    @property
    def exhausted(self) -> bool:
        return self.index >= len(self.places)

    @property
    def current(self) -> Place:
        return self.places[self.index]

    def advance(self) -> "ScheduleCursor":
        return self._replace(index=self.index + 1)

    def mark_used(self, place_id: str) -> "ScheduleCursor":
        return self._replace(used_ids=self.used_ids | {place_id})


def past_day_end(moment: datetime, day_date: date) -> bool:
    """True once moment reaches DAY_END_HOUR on day_date or rolls into a later date."""
    return moment.date() > day_date or moment.hour >= DAY_END_HOUR


def evaluate_candidate(
    place: Place,
    current_time: datetime,
    day_date: date,
    previous: Place | None,
    used_ids: Iterable[str] = (),
) -> CandidateDecision:
    """Classify one candidate at current_time; previous is the last place scheduled today."""
    if past_day_end(current_time, day_date):
        return CandidateDecision(Decision.STOP_DAY)
    if place.id in used_ids:
        return CandidateDecision(Decision.SKIP_PERMANENTLY)
    if not is_place_open(place, day_date, current_time.hour):
        return CandidateDecision(Decision.SKIP_PERMANENTLY)

    travel = 0
    start = current_time
    if previous is not None:
        travel = travel_minutes(distance_between(previous, place)) + TRAVEL_BUFFER_MINUTES
        start = current_time + timedelta(minutes=travel)
        if past_day_end(start, day_date):
            return CandidateDecision(Decision.DEFER_TO_NEXT_DAY, travel_time=travel)
        if not is_place_open(place, day_date, start.hour):
            return CandidateDecision(Decision.SKIP_PERMANENTLY, travel_time=travel)

    end = start + timedelta(minutes=place.suggested_duration)
    if past_day_end(end, day_date):
        return CandidateDecision(Decision.DEFER_TO_NEXT_DAY, start=start, end=end, travel_time=travel or None)
    return CandidateDecision(Decision.SCHEDULE, start=start, end=end, travel_time=travel or None)


def _lunch_due(current_time: datetime, lunch_handled: bool, place: Place) -> bool:
    return current_time.hour >= LUNCH_HOUR and not lunch_handled and place.category != "dining"


def schedule_day(
    cursor: ScheduleCursor,
    day_number: int,
    day_date: date,
    district_id: str,
    *,
    find_dining: FindDining,
) -> tuple[DayItinerary, ScheduleCursor]:
    """Fill one day from the cursor. Returns the day and the cursor for the next day."""
    current_time = datetime.combine(day_date, time(DAY_START_HOUR, 0))
    slots: list[TimeSlot] = []
    day_cost = 0.0
    lunch_handled = False

    while not cursor.exhausted:
        place = cursor.current

        if not past_day_end(current_time, day_date) and _lunch_due(current_time, lunch_handled, place):
            # Lunch is attempted once per day; no venue means no lunch today
            lunch_handled = True
            anchor = slots[-1].place if slots else place
            venue = find_dining(district_id, anchor, exclude_ids=cursor.used_ids, at=current_time)
            if venue is not None:
                lunch_end = current_time + timedelta(minutes=LUNCH_DURATION_MINUTES)
                slots.append(TimeSlot(place=venue, start_time=current_time, end_time=lunch_end, type="dining"))
                day_cost += venue.avg_price
                current_time = lunch_end
                cursor = cursor.mark_used(venue.id)
                continue

        previous = slots[-1].place if slots else None
        outcome = evaluate_candidate(place, current_time, day_date, previous, cursor.used_ids)
        logger.debug(
            "telemetry candidate_decision day=%s place_id=%s decision=%s",
            day_number,
            place.id,
            outcome.decision.value,
        )

        if outcome.decision is Decision.SKIP_PERMANENTLY:
            cursor = cursor.advance()
            continue
        if outcome.decision in (Decision.DEFER_TO_NEXT_DAY, Decision.STOP_DAY):
            break

        slots.append(
            TimeSlot(
                place=place,
                start_time=outcome.start,
                end_time=outcome.end,
                type="dining" if place.category == "dining" else "attraction",
                travel_time=outcome.travel_time,
            )
        )
        day_cost += place.avg_price
        current_time = outcome.end
        cursor = cursor.advance().mark_used(place.id)

    day = DayItinerary(day=day_number, date=day_date, slots=slots, total_cost=day_cost)
    logger.info(
        "telemetry day_scheduled day=%s date=%s slots=%s cost=%.2f cursor=%s",
        day_number,
        day_date.isoformat(),
        len(slots),
        day_cost,
        cursor.index,
    )
    return day, cursor


def generate_itinerary(
    places: list[Place],
    start_date: date,
    day_count: int,
    district_id: str,
    *,
    find_dining: FindDining,
) -> TripItinerary:
    """Order the candidate pool by proximity and schedule it across day_count days."""
    cursor = ScheduleCursor(places=tuple(order_by_proximity(places)))
    days: list[DayItinerary] = []
    for offset in range(day_count):
        day, cursor = schedule_day(
            cursor,
            offset + 1,
            start_date + timedelta(days=offset),
            district_id,
            find_dining=find_dining,
        )
        days.append(day)
    return TripItinerary(
        days=days,
        total_cost=sum(d.total_cost for d in days),
        total_places=cursor.index,
    )
