"""
Trip generation entry point and itinerary edits.
Generation: filter candidates -> order by proximity -> schedule day by day.
Regeneration is the same call with the ids the traveler removed.
"""
import logging
from datetime import date
from typing import Iterable

from tripplanner.itinerary.candidates import QueryPlaces, filter_places
from tripplanner.itinerary.dining import find_nearby_dining
from tripplanner.itinerary.models import Place, TripItinerary
from tripplanner.itinerary.scheduler import generate_itinerary

logger = logging.getLogger(__name__)


def generate_trip(
    district_id: str,
    interests: Iterable[str],
    budget: float,
    traveler_count: int,
    start_date: date,
    day_count: int,
    excluded_place_ids: Iterable[str] = (),
    *,
    query_places: QueryPlaces,
) -> TripItinerary:
    """
    Build a day_count-day itinerary for the district.
    Never raises for empty catalogs or closed places; such trips come back with empty days.
    Excluded ids are kept out of both the candidate pool and the lunch venues.
    """
    excluded = frozenset(excluded_place_ids)
    interests = list(interests)
    places = filter_places(
        district_id,
        interests,
        budget,
        traveler_count,
        excluded,
        query_places=query_places,
    )

    def find_dining(district: str, anchor: Place, *, exclude_ids: Iterable[str] = (), at=None) -> Place | None:
        return find_nearby_dining(
            district,
            anchor,
            query_places=query_places,
            exclude_ids=excluded | frozenset(exclude_ids),
            at=at,
        )

    itinerary = generate_itinerary(places, start_date, day_count, district_id, find_dining=find_dining)
    logger.info(
        "telemetry trip_generated district_id=%s days=%s candidates=%s consumed=%s total_cost=%.2f excluded=%s",
        district_id,
        day_count,
        len(places),
        itinerary.total_places,
        itinerary.total_cost,
        len(excluded),
    )
    return itinerary


def itinerary_place_ids(itinerary: TripItinerary) -> list[str]:
    """Place ids in schedule order, first occurrence only."""
    seen: list[str] = []
    for day in itinerary.days:
        for slot in day.slots:
            if slot.place.id not in seen:
                seen.append(slot.place.id)
    return seen


def remove_place(itinerary: TripItinerary, place_id: str) -> TripItinerary:
    """Drop every slot for place_id and recompute day and trip costs. Times of other slots are kept."""
    days = []
    for day in itinerary.days:
        slots = [s for s in day.slots if s.place.id != place_id]
        day_cost = 0.0
        for s in slots:
            day_cost += s.place.avg_price
        days.append(day.model_copy(update={"slots": slots, "total_cost": day_cost}))
    return TripItinerary(
        days=days,
        total_cost=sum(d.total_cost for d in days),
        total_places=itinerary.total_places,
    )
