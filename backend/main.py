import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from settings import get_settings
from tripplanner.catalog.client import PlaceCatalogClient
from tripplanner.data.places_repo import get_district, get_place, init_app_db, list_districts, query_places
from tripplanner.data.plans_repo import (
    PlanRecord,
    create_plan,
    delete_plan,
    get_plan,
    list_plans,
    remove_place_from_plan,
    update_plan_status,
)
from tripplanner.itinerary.models import (
    PLAN_STATUSES,
    CreatePlanRequest,
    DistrictResponse,
    DistrictsListResponse,
    GenerateTripRequest,
    Place,
    PlanResponse,
    PlansListResponse,
    PlacesListResponse,
    TripItinerary,
    UpdatePlanRequest,
)
from tripplanner.itinerary.service import generate_trip
from tripplanner.middleware import RequestLoggingMiddleware
from tripplanner.monitoring import get_metrics, record_trip

settings = get_settings()
BACKEND_ROOT = Path(__file__).resolve().parent
APP_DB = BACKEND_ROOT / settings.app_db_path

# Structured logging: include module and level; handlers can add JSON later
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, default_limits=["100/minute"])

PLACES_LIMIT_MIN, PLACES_LIMIT_MAX = 1, 100
TRENDING_MIN_RATING = 4.0
HIDDEN_GEM_MIN_RATING = 3.5
HIDDEN_GEM_MAX_POPULARITY = 70


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_app_db(APP_DB)
    if settings.catalog_backend == "postgrest" and settings.catalog_url:
        app.state.catalog_client = PlaceCatalogClient(settings.catalog_url, api_key=settings.catalog_api_key)
    else:
        app.state.catalog_client = None
    logger.info("telemetry startup catalog_backend=%s", settings.catalog_backend)
    yield
    app.state.catalog_client = None


app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    """Return consistent JSON error for unhandled exceptions (500). Skip validation/HTTP errors."""
    from fastapi.exceptions import RequestValidationError
    if isinstance(exc, (HTTPException, RequestValidationError)):
        raise exc
    logger.exception("telemetry unhandled_exception path=%s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "An unexpected error occurred. Please try again later."},
    )


# Order: last added = outermost. CORS wraps request logging.
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Catalog access (SQLite places table or remote PostgREST catalog) ---


def _catalog_client() -> PlaceCatalogClient | None:
    return getattr(app.state, "catalog_client", None)


def _query_catalog(**filters) -> list[Place]:
    client = _catalog_client()
    if client is not None:
        return client.query_places(**filters)
    return query_places(APP_DB, **filters)


def _browse(**filters) -> list[Place]:
    """Catalog query for browse endpoints: failures become 502 instead of an empty list."""
    try:
        return _query_catalog(**filters)
    except Exception as e:
        logger.warning("telemetry catalog_browse_error error=%s", str(e))
        raise HTTPException(status_code=502, detail="Place catalog unavailable. Please try again.") from e


def _clamp_limit(limit: int, default: int) -> int:
    return limit if PLACES_LIMIT_MIN <= limit <= PLACES_LIMIT_MAX else default


@app.get("/favicon.ico", include_in_schema=False)
@limiter.exempt
def favicon(request: Request):
    """Return 204 so browser favicon requests don't log 404."""
    return Response(status_code=204)


@app.get("/health")
@limiter.exempt
def health(request: Request):
    return {"status": "ok"}


@app.get("/metrics")
@limiter.exempt
def metrics(request: Request):
    """Request and trip-generation counters, uptime."""
    return get_metrics()


# --- Districts & places ---


@app.get("/districts", response_model=DistrictsListResponse)
def get_districts(request: Request):
    districts = list_districts(APP_DB)
    return DistrictsListResponse(
        districts=[
            DistrictResponse(id=d.district_id, name=d.name, name_ms=d.name_ms, description=d.description)
            for d in districts
        ]
    )


@app.get("/districts/{district_id}/places", response_model=PlacesListResponse)
def get_district_places(request: Request, district_id: str, category: str = "", limit: int = 50):
    """Active places of a district, most popular first. Optional ?category= (attraction, dining, ...)."""
    if get_district(APP_DB, district_id) is None:
        raise HTTPException(status_code=404, detail=f"District not found: {district_id}.")
    category = (category or "").strip().lower()
    places = _browse(
        district_id=district_id,
        categories=(category,) if category else None,
        order_by="popularity",
        limit=_clamp_limit(limit, 50),
    )
    logger.info("telemetry route=district_places district_id=%s count=%s", district_id, len(places))
    return PlacesListResponse(places=places)


@app.get("/places/{place_id}", response_model=Place)
def get_place_detail(request: Request, place_id: str):
    client = _catalog_client()
    try:
        place = client.get_place(place_id) if client is not None else get_place(APP_DB, place_id)
    except RuntimeError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    if place is None:
        raise HTTPException(status_code=404, detail=f"Place not found: {place_id}.")
    return place


# --- Discovery lists (deterministic: best rated / most popular first) ---


@app.get("/discover/trending", response_model=PlacesListResponse)
def discover_trending(request: Request, limit: int = 9):
    """Highly rated attractions across all districts."""
    places = _browse(
        categories=("attraction",),
        min_rating=TRENDING_MIN_RATING,
        order_by="rating",
        limit=_clamp_limit(limit, 9),
    )
    return PlacesListResponse(places=places)


@app.get("/discover/hidden-gems", response_model=PlacesListResponse)
def discover_hidden_gems(request: Request, limit: int = 7):
    """Well rated attractions that are not (yet) popular."""
    places = _browse(
        categories=("attraction",),
        min_rating=HIDDEN_GEM_MIN_RATING,
        popularity_lt=HIDDEN_GEM_MAX_POPULARITY,
        order_by="rating",
        limit=_clamp_limit(limit, 7),
    )
    return PlacesListResponse(places=places)


@app.get("/discover/popular", response_model=PlacesListResponse)
def discover_popular(request: Request):
    """The most popular attraction of each district, districts in name order."""
    places: list[Place] = []
    for d in list_districts(APP_DB):
        places.extend(
            _browse(district_id=d.district_id, categories=("attraction",), order_by="popularity", limit=1)
        )
    return PlacesListResponse(places=places)


# --- Trip generation ---


@app.post("/trips/generate", response_model=TripItinerary)
@limiter.limit(settings.generate_rate_limit)
def post_generate_trip(request: Request, body: GenerateTripRequest):
    """
    Generate a day-by-day itinerary. Send the ids removed from a previous plan in
    excluded_place_ids to regenerate with alternatives. An empty plan is a 200 with empty days.
    """
    if get_district(APP_DB, body.district_id) is None:
        raise HTTPException(status_code=404, detail=f"District not found: {body.district_id}.")
    regenerated = bool(body.excluded_place_ids)
    logger.info(
        "telemetry route=generate_trip district_id=%s days=%s regenerate=%s",
        body.district_id,
        body.day_count,
        regenerated,
    )
    itinerary = generate_trip(
        body.district_id,
        body.interests,
        body.budget,
        body.traveler_count,
        body.start_date,
        body.day_count,
        body.excluded_place_ids,
        query_places=_query_catalog,
    )
    record_trip(sum(len(d.slots) for d in itinerary.days), regenerated)
    return itinerary


# --- Saved plans (MVP: default user only) ---


def _plan_response(rec: PlanRecord) -> PlanResponse:
    return PlanResponse(
        plan_id=rec.plan_id,
        user_id=rec.user_id,
        title=rec.title,
        start_date=rec.start_date,
        end_date=rec.end_date,
        district_ids=rec.district_ids,
        status=rec.status,
        itinerary=rec.itinerary,
        preferences=rec.preferences,
        created_at=rec.created_at,
    )


@app.post("/plans", response_model=PlanResponse, status_code=201)
def post_plan(request: Request, body: CreatePlanRequest):
    """Save a reviewed itinerary. Title defaults to "<traveler type> Trip to <district>"."""
    district = get_district(APP_DB, body.district_id)
    if district is None:
        raise HTTPException(status_code=400, detail=f"District not found: {body.district_id}.")
    title = body.title
    if title is None:
        prefix = body.preferences.traveler_type or "My"
        title = f"{prefix} Trip to {district.name}"
    try:
        rec = create_plan(
            APP_DB,
            title=title,
            start_date=body.start_date,
            end_date=body.end_date,
            district_ids=[body.district_id],
            itinerary=body.itinerary,
            preferences=body.preferences,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("telemetry route=create_plan plan_id=%s district_id=%s", rec.plan_id, body.district_id)
    return _plan_response(rec)


@app.get("/plans", response_model=PlansListResponse)
def get_plans(request: Request, status: str = ""):
    status = (status or "").strip().lower()
    if status and status not in PLAN_STATUSES:
        raise HTTPException(status_code=400, detail=f"Invalid status '{status}'.")
    plans = list_plans(APP_DB, status=status or None)
    return PlansListResponse(plans=[_plan_response(p) for p in plans])


@app.get("/plans/{plan_id}", response_model=PlanResponse)
def get_plan_detail(request: Request, plan_id: str):
    rec = get_plan(APP_DB, plan_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="Plan not found.")
    return _plan_response(rec)


@app.patch("/plans/{plan_id}", response_model=PlanResponse)
def patch_plan(request: Request, plan_id: str, body: UpdatePlanRequest):
    try:
        rec = update_plan_status(APP_DB, plan_id, body.status)
    except LookupError as e:
        raise HTTPException(status_code=404, detail="Plan not found.") from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _plan_response(rec)


@app.delete("/plans/{plan_id}", status_code=204)
def delete_plan_endpoint(request: Request, plan_id: str):
    if not delete_plan(APP_DB, plan_id):
        raise HTTPException(status_code=404, detail="Plan not found.")


@app.delete("/plans/{plan_id}/places/{place_id}", response_model=PlanResponse)
def delete_plan_place(request: Request, plan_id: str, place_id: str):
    """Remove a stop from a saved plan; its id is remembered for regeneration."""
    try:
        rec = remove_place_from_plan(APP_DB, plan_id, place_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    logger.info("telemetry route=remove_plan_place plan_id=%s place_id=%s", plan_id, place_id)
    return _plan_response(rec)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port)
