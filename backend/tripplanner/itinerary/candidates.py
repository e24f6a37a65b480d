"""
Candidate pool for itinerary generation: interest-tag match, per-person budget
ceiling and exclusions, ranked by popularity then rating.
"""
import logging
from typing import Iterable, Protocol

from tripplanner.itinerary.models import Place

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 15
CANDIDATE_CATEGORIES = ("attraction", "dining")

INTEREST_TAGS: dict[str, frozenset[str]] = {
    "Historical": frozenset({"historical", "cultural"}),
    "Art & Culture": frozenset({"art", "cultural", "museum"}),
    "Entertainment": frozenset({"entertainment", "fun", "activities"}),
    "Nature": frozenset({"nature", "outdoor", "scenic", "beach"}),
    "Food": frozenset({"dining", "local-food", "food"}),
    "Shopping": frozenset({"shopping", "market"}),
}


class QueryPlaces(Protocol):
    """Place catalog query. Implemented by places_repo (SQLite) and PlaceCatalogClient (PostgREST)."""

    def __call__(
        self,
        *,
        district_id: str | None = None,
        categories: Iterable[str] | None = None,
        is_active: bool = True,
        price_lte: float | None = None,
        exclude_ids: Iterable[str] = (),
        order_by: str | None = None,
        limit: int | None = None,
        min_rating: float | None = None,
        popularity_lt: float | None = None,
    ) -> list[Place]: ...


def interest_tags(interests: Iterable[str]) -> frozenset[str]:
    """Union of tags for the given interest categories; unknown categories add nothing."""
    tags: set[str] = set()
    for interest in interests:
        tags |= INTEREST_TAGS.get(interest, frozenset())
    return frozenset(tags)


def per_person_ceiling(budget: float, traveler_count: int | None) -> float:
    # Zero or negative traveler counts are treated as a solo traveler
    travelers = traveler_count if traveler_count and traveler_count > 0 else 1
    return budget / travelers


def filter_places(
    district_id: str,
    interests: Iterable[str],
    budget: float,
    traveler_count: int | None,
    excluded_place_ids: Iterable[str] = (),
    *,
    query_places: QueryPlaces,
) -> list[Place]:
    """
    Return up to MAX_CANDIDATES places for the district, best first.
    No interests means no candidates. Catalog failures are logged and give [].
    """
    tags = interest_tags(interests)
    if not tags:
        logger.info("telemetry candidates_empty district_id=%s reason=no_interests", district_id)
        return []

    excluded = frozenset(excluded_place_ids)
    try:
        places = query_places(
            district_id=district_id,
            categories=CANDIDATE_CATEGORIES,
            is_active=True,
            price_lte=per_person_ceiling(budget, traveler_count),
            exclude_ids=excluded,
        )
    except Exception:
        logger.warning("telemetry candidates_query_failed district_id=%s", district_id, exc_info=True)
        return []

    matched = [
        p for p in places
        if p.id not in excluded and any(t.lower() in tags for t in p.tags)
    ]
    # Stable sort: catalog order breaks full ties
    matched.sort(key=lambda p: (-p.popularity_score, -p.rating))
    candidates = matched[:MAX_CANDIDATES]
    logger.info(
        "telemetry candidates_selected district_id=%s fetched=%s matched=%s kept=%s excluded=%s",
        district_id,
        len(places),
        len(matched),
        len(candidates),
        len(excluded),
    )
    return candidates
