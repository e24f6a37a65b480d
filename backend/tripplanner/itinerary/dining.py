"""
Lunch venue lookup: nearest of the district's top-rated dining places.
"""
import logging
from datetime import datetime
from typing import Iterable

from tripplanner.itinerary.candidates import QueryPlaces
from tripplanner.itinerary.hours import is_place_open
from tripplanner.itinerary.models import Place
from tripplanner.itinerary.routing import distance_between

logger = logging.getLogger(__name__)

DINING_LOOKUP_LIMIT = 10


def find_nearby_dining(
    district_id: str,
    anchor: Place,
    *,
    query_places: QueryPlaces,
    exclude_ids: Iterable[str] = (),
    at: datetime | None = None,
) -> Place | None:
    """
    Return the dining place closest to anchor among the district's 10 best rated,
    or None when there is none. When `at` is given, venues closed at that
    weekday/hour are ignored. Catalog failures are logged and give None.
    """
    excluded = frozenset(exclude_ids)
    try:
        venues = query_places(
            district_id=district_id,
            categories=("dining",),
            is_active=True,
            exclude_ids=excluded,
            order_by="rating",
            limit=DINING_LOOKUP_LIMIT,
        )
    except Exception:
        logger.warning("telemetry dining_query_failed district_id=%s", district_id, exc_info=True)
        return None

    venues = [v for v in venues if v.id not in excluded]
    if at is not None:
        venues = [v for v in venues if is_place_open(v, at.date(), at.hour)]
    if not venues:
        logger.info("telemetry dining_not_found district_id=%s anchor=%s", district_id, anchor.id)
        return None

    closest = venues[0]
    min_km = distance_between(anchor, closest)
    for venue in venues[1:]:
        d = distance_between(anchor, venue)
        if d < min_km:
            min_km = d
            closest = venue
    return closest
