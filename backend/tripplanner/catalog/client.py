"""
Place catalog over PostgREST (e.g. a Supabase `places` table) with an in-memory TTL cache.
Includes timeouts, retry with exponential backoff, and row normalization into Place.
"""
import logging
import time
from typing import Any, Iterable

import httpx
from pydantic import ValidationError

from tripplanner.itinerary.models import OpeningHours, Place

logger = logging.getLogger(__name__)

PLACES_CACHE_TTL_SECONDS = 300
CATALOG_REQUEST_TIMEOUT_SECONDS = 10.0
CATALOG_RETRY_ATTEMPTS = 3
CATALOG_RETRY_BASE_DELAY_SECONDS = 0.5
CATALOG_RETRY_MAX_DELAY_SECONDS = 4.0

# Public order_by names -> PostgREST order parameter
ORDER_PARAMS = {
    "rating": "rating.desc",
    "popularity": "popularity_score.desc,rating.desc",
}


class _TTLCache:
    """Simple in-memory TTL cache. One TTL per key (from first set)."""

    def __init__(self, ttl_seconds: int = PLACES_CACHE_TTL_SECONDS):
        self._ttl = ttl_seconds
        self._store: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._store[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = (value, time.monotonic() + self._ttl)


def _in_list(values: Iterable[str]) -> str:
    return "(" + ",".join(str(v) for v in values) + ")"


def _build_params(
    *,
    district_id: str | None = None,
    categories: Iterable[str] | None = None,
    is_active: bool | None = True,
    price_lte: float | None = None,
    exclude_ids: Iterable[str] = (),
    order_by: str | None = None,
    limit: int | None = None,
    min_rating: float | None = None,
    popularity_lt: float | None = None,
) -> dict[str, str]:
    """Translate a catalog query into PostgREST filter parameters."""
    if order_by is not None and order_by not in ORDER_PARAMS:
        raise ValueError(f"Unsupported order_by '{order_by}'. Use: {', '.join(ORDER_PARAMS)}.")
    params = {"select": "*"}
    if district_id is not None:
        params["district_id"] = f"eq.{district_id}"
    if categories is not None:
        params["category"] = f"in.{_in_list(categories)}"
    if is_active is not None:
        params["is_active"] = f"eq.{'true' if is_active else 'false'}"
    if price_lte is not None:
        params["avg_price"] = f"lte.{price_lte}"
    if min_rating is not None:
        params["rating"] = f"gte.{min_rating}"
    if popularity_lt is not None:
        params["popularity_score"] = f"lt.{popularity_lt}"
    excluded = sorted(set(exclude_ids))
    if excluded:
        params["id"] = f"not.in.{_in_list(excluded)}"
    if order_by is not None:
        params["order"] = ORDER_PARAMS[order_by]
    if limit is not None:
        params["limit"] = str(max(0, int(limit)))
    return params


def _normalize_place(raw: dict[str, Any]) -> Place | None:
    """Normalize one catalog row to Place; rows that cannot be parsed are dropped."""
    hours = raw.get("opening_hours")
    if not isinstance(hours, dict):
        hours = {}
    tags = raw.get("tags")
    try:
        return Place(
            id=str(raw.get("id") or raw.get("place_id") or ""),
            name=raw.get("name") or "",
            district_id=str(raw.get("district_id") or ""),
            tags=tags if isinstance(tags, list) else [],
            avg_price=float(raw.get("avg_price") or 0),
            latitude=float(raw["latitude"] if raw.get("latitude") is not None else raw["lat"]),
            longitude=float(raw["longitude"] if raw.get("longitude") is not None else raw["lng"]),
            opening_hours=OpeningHours(**hours),
            suggested_duration=int(raw.get("suggested_duration") or 60),
            category=raw.get("category") or "attraction",
            popularity_score=float(raw.get("popularity_score") or 0),
            rating=float(raw.get("rating") or 0),
            is_active=bool(raw.get("is_active", True)),
            description=raw.get("description"),
            image_path=raw.get("image_path"),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        logger.warning("telemetry catalog_row_invalid id=%s error=%s", raw.get("id"), str(e))
        return None


class PlaceCatalogClient:
    """Read-only client for a PostgREST `places` table. Query results are cached for 5 minutes."""

    def __init__(self, base_url: str, api_key: str = "", table: str = "places"):
        self._base = base_url.rstrip("/")
        self._table = table
        self._headers = {"Accept": "application/json"}
        if api_key:
            self._headers["apikey"] = api_key
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._cache = _TTLCache(ttl_seconds=PLACES_CACHE_TTL_SECONDS)

    def _cache_key(self, params: dict[str, str]) -> str:
        return "places:" + "&".join(f"{k}={params[k]}" for k in sorted(params))

    def _fetch_rows(self, params: dict[str, str]) -> list[dict[str, Any]]:
        url = f"{self._base}/{self._table}"
        last_error: Exception | None = None
        for attempt in range(CATALOG_RETRY_ATTEMPTS):
            try:
                with httpx.Client(timeout=CATALOG_REQUEST_TIMEOUT_SECONDS, headers=self._headers) as client:
                    resp = client.get(url, params=params)
                    resp.raise_for_status()
                    data = resp.json()
                return data if isinstance(data, list) else []
            except httpx.TimeoutException as e:
                last_error = e
                logger.warning("telemetry catalog_timeout attempt=%s", attempt + 1)
            except (httpx.HTTPError, ValueError) as e:
                last_error = e
                logger.warning("telemetry catalog_api_error attempt=%s error=%s", attempt + 1, str(e))
            if attempt < CATALOG_RETRY_ATTEMPTS - 1:
                delay = min(
                    CATALOG_RETRY_BASE_DELAY_SECONDS * (2**attempt),
                    CATALOG_RETRY_MAX_DELAY_SECONDS,
                )
                time.sleep(delay)
        msg = "Place catalog unavailable (timeout or error after retries)."
        if last_error:
            raise RuntimeError(msg) from last_error
        raise RuntimeError(msg)

    def query_places(self, **filters: Any) -> list[Place]:
        """
        Catalog query with the same keyword filters as places_repo.query_places.
        Raises RuntimeError when the catalog stays unreachable after retries.
        """
        params = _build_params(**filters)
        key = self._cache_key(params)
        cached = self._cache.get(key)
        if cached is not None:
            logger.info("telemetry catalog_served cache_hit=true count=%s", len(cached))
            return list(cached)

        rows = self._fetch_rows(params)
        places = [p for p in (_normalize_place(r) for r in rows if isinstance(r, dict)) if p is not None]
        self._cache.set(key, places)
        logger.info("telemetry catalog_served cache_hit=false count=%s", len(places))
        return list(places)

    def get_place(self, place_id: str) -> Place | None:
        rows = self._fetch_rows({"select": "*", "id": f"eq.{place_id}", "limit": "1"})
        for r in rows:
            if isinstance(r, dict):
                return _normalize_place(r)
        return None
