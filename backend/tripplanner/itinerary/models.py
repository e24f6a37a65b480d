"""Pydantic models for places, generated itineraries and the trip/plan API."""
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

INTEREST_CATEGORIES = ("Historical", "Art & Culture", "Entertainment", "Nature", "Food", "Shopping")

TRAVELER_TYPES = ("Solo", "Couple", "Family", "Friends")

PLAN_STATUSES = frozenset({"active", "saved", "completed"})

MAX_TRIP_DAYS = 30

SlotType = Literal["attraction", "dining", "travel"]


class OpeningHours(BaseModel):
    """One "HH:MM-HH:MM" range per weekday (None = unknown) plus fully closed weekdays."""

    monday: str | None = None
    tuesday: str | None = None
    wednesday: str | None = None
    thursday: str | None = None
    friday: str | None = None
    saturday: str | None = None
    sunday: str | None = None
    closed: list[str] = Field(default_factory=list)

    @field_validator("closed", mode="before")
    @classmethod
    def closed_lowercase(cls, v) -> list[str]:
        if v is None:
            return []
        return [str(d).strip().lower() for d in v if str(d).strip()]

    def range_for(self, weekday: str) -> str | None:
        return getattr(self, weekday, None)


class Place(BaseModel):
    id: str
    name: str
    district_id: str
    tags: list[str] = Field(default_factory=list)
    avg_price: float = Field(default=0.0, ge=0)
    latitude: float
    longitude: float
    opening_hours: OpeningHours = Field(default_factory=OpeningHours)
    suggested_duration: int = Field(default=60, gt=0)  # minutes
    category: str = "attraction"
    popularity_score: float = 0.0
    rating: float = 0.0
    is_active: bool = True
    description: str | None = None
    image_path: str | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def tags_lowercase(cls, v) -> list[str]:
        if v is None:
            return []
        return [str(t).strip().lower() for t in v if str(t).strip()]


class TimeSlot(BaseModel):
    place: Place
    start_time: datetime
    end_time: datetime
    type: SlotType
    travel_time: int | None = None  # minutes of travel + buffer before this slot

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self


class DayItinerary(BaseModel):
    day: int
    date: date
    slots: list[TimeSlot] = Field(default_factory=list)
    total_cost: float = 0.0


class TripItinerary(BaseModel):
    days: list[DayItinerary] = Field(default_factory=list)
    total_cost: float = 0.0
    total_places: int = 0


# --- API request/response models ---


class DistrictResponse(BaseModel):
    id: str
    name: str
    name_ms: str
    description: str | None = None


class DistrictsListResponse(BaseModel):
    districts: list[DistrictResponse]


class PlacesListResponse(BaseModel):
    places: list[Place]


class GenerateTripRequest(BaseModel):
    district_id: str
    interests: list[str] = Field(default_factory=list)
    budget: float = Field(gt=0)
    traveler_count: int = Field(default=1, ge=1)
    traveler_type: str | None = None
    start_date: date
    end_date: date | None = None
    day_count: int | None = Field(default=None, ge=1, le=MAX_TRIP_DAYS)
    excluded_place_ids: list[str] = Field(default_factory=list)

    @field_validator("district_id")
    @classmethod
    def district_not_empty(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("district_id must not be empty.")
        return v

    @field_validator("interests")
    @classmethod
    def interests_known(cls, v: list[str]) -> list[str]:
        out = []
        for interest in v:
            if interest not in INTEREST_CATEGORIES:
                raise ValueError(
                    f"Unknown interest '{interest}'. Use: {', '.join(INTEREST_CATEGORIES)}."
                )
            if interest not in out:
                out.append(interest)
        return out

    @field_validator("traveler_type")
    @classmethod
    def traveler_type_known(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().title()
        if v not in TRAVELER_TYPES:
            raise ValueError(f"Invalid traveler_type '{v}'. Use: {', '.join(TRAVELER_TYPES)}.")
        return v

    @model_validator(mode="after")
    def resolve_day_count(self):
        if self.end_date is not None:
            if self.end_date < self.start_date:
                raise ValueError("end_date must not be before start_date.")
            span = (self.end_date - self.start_date).days + 1
            if span > MAX_TRIP_DAYS:
                raise ValueError(f"Trips are limited to {MAX_TRIP_DAYS} days.")
            if self.day_count is not None and self.day_count != span:
                raise ValueError("day_count does not match the date range.")
            self.day_count = span
        elif self.day_count is None:
            raise ValueError("Provide end_date or day_count.")
        return self


class PlanPreferences(BaseModel):
    traveler_count: int = Field(default=1, ge=1)
    traveler_type: str | None = None
    budget: float | None = None
    interests: list[str] = Field(default_factory=list)
    removed_place_ids: list[str] = Field(default_factory=list)


class CreatePlanRequest(BaseModel):
    district_id: str
    start_date: date
    end_date: date
    title: str | None = None
    itinerary: TripItinerary
    preferences: PlanPreferences = Field(default_factory=PlanPreferences)

    @field_validator("title", mode="before")
    @classmethod
    def title_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return (v or "").strip() or None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date.")
        if not self.itinerary.days:
            raise ValueError("Itinerary is empty. Generate a trip first.")
        return self


class UpdatePlanRequest(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def status_known(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in PLAN_STATUSES:
            raise ValueError(f"Invalid status '{v}'. Use: {', '.join(sorted(PLAN_STATUSES))}.")
        return v


class PlanResponse(BaseModel):
    plan_id: str
    user_id: str
    title: str
    start_date: date
    end_date: date
    district_ids: list[str]
    status: str
    itinerary: TripItinerary
    preferences: PlanPreferences
    created_at: str


class PlansListResponse(BaseModel):
    plans: list[PlanResponse]
