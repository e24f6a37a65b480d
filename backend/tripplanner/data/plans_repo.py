"""
Saved travel plans (travel_plans table). The itinerary is stored verbatim as JSON.
"""
import json
import sqlite3
import uuid
from datetime import date, datetime, timezone
from pathlib import Path
from typing import NamedTuple

from tripplanner.itinerary.models import PLAN_STATUSES, PlanPreferences, TripItinerary
from tripplanner.itinerary.service import remove_place

DEFAULT_USER_ID = "default"
DEFAULT_STATUS = "active"


class PlanRecord(NamedTuple):
    plan_id: str
    user_id: str
    title: str
    start_date: str
    end_date: str
    district_ids: list[str]
    status: str
    itinerary: TripItinerary
    preferences: PlanPreferences
    created_at: str


_SELECT = (
    "SELECT plan_id, user_id, title, start_date, end_date, district_ids, status, "
    "itinerary, preferences, created_at FROM travel_plans"
)


def _row_to_plan(r: sqlite3.Row) -> PlanRecord:
    district_ids = json.loads(r["district_ids"])
    if not isinstance(district_ids, list):
        district_ids = []
    # Full TripItinerary JSON: {"days": [...], "total_cost": ..., "total_places": ...}
    stored = json.loads(r["itinerary"])
    return PlanRecord(
        plan_id=r["plan_id"],
        user_id=r["user_id"],
        title=r["title"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        district_ids=district_ids,
        status=r["status"],
        itinerary=TripItinerary.model_validate(stored),
        preferences=PlanPreferences.model_validate(json.loads(r["preferences"] or "{}")),
        created_at=r["created_at"],
    )


def create_plan(
    db_path: str | Path,
    *,
    title: str,
    start_date: date,
    end_date: date,
    district_ids: list[str],
    itinerary: TripItinerary,
    preferences: PlanPreferences | None = None,
    user_id: str = DEFAULT_USER_ID,
    status: str = DEFAULT_STATUS,
    plan_id: str | None = None,
) -> PlanRecord:
    db_path = Path(db_path)
    if not db_path.exists():
        raise ValueError("Database not initialized. Run seed_places.py first.")
    if status not in PLAN_STATUSES:
        raise ValueError(f"Invalid status '{status}'.")
    if not itinerary.days:
        raise ValueError("Itinerary is empty.")
    pid = plan_id or str(uuid.uuid4())
    prefs = preferences or PlanPreferences()
    created_at = datetime.now(timezone.utc).isoformat()
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO travel_plans
                (plan_id, user_id, title, start_date, end_date, district_ids, status,
                 itinerary, preferences, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                pid, user_id, title, start_date.isoformat(), end_date.isoformat(),
                json.dumps(district_ids), status,
                itinerary.model_dump_json(), prefs.model_dump_json(), created_at,
            ),
        )
        conn.commit()
    return PlanRecord(
        plan_id=pid,
        user_id=user_id,
        title=title,
        start_date=start_date.isoformat(),
        end_date=end_date.isoformat(),
        district_ids=list(district_ids),
        status=status,
        itinerary=itinerary,
        preferences=prefs,
        created_at=created_at,
    )


def get_plan(db_path: str | Path, plan_id: str, user_id: str = DEFAULT_USER_ID) -> PlanRecord | None:
    db_path = Path(db_path)
    if not db_path.exists():
        return None
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        r = conn.execute(f"{_SELECT} WHERE plan_id = ? AND user_id = ?", (plan_id, user_id)).fetchone()
        return _row_to_plan(r) if r is not None else None


def list_plans(
    db_path: str | Path,
    user_id: str = DEFAULT_USER_ID,
    status: str | None = None,
) -> list[PlanRecord]:
    """Plans for the user, soonest trip first."""
    db_path = Path(db_path)
    if not db_path.exists():
        return []
    sql = f"{_SELECT} WHERE user_id = ?"
    params: list = [user_id]
    if status is not None:
        sql += " AND status = ?"
        params.append(status)
    sql += " ORDER BY start_date, created_at"
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        return [_row_to_plan(r) for r in conn.execute(sql, params).fetchall()]


def update_plan_status(
    db_path: str | Path,
    plan_id: str,
    status: str,
    user_id: str = DEFAULT_USER_ID,
) -> PlanRecord:
    if status not in PLAN_STATUSES:
        raise ValueError(f"Invalid status '{status}'.")
    db_path = Path(db_path)
    if not db_path.exists():
        raise LookupError(f"Plan '{plan_id}' not found.")
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute(
            "UPDATE travel_plans SET status = ? WHERE plan_id = ? AND user_id = ?",
            (status, plan_id, user_id),
        )
        conn.commit()
        if cur.rowcount == 0:
            raise LookupError(f"Plan '{plan_id}' not found.")
    return get_plan(db_path, plan_id, user_id)


def delete_plan(db_path: str | Path, plan_id: str, user_id: str = DEFAULT_USER_ID) -> bool:
    """Delete a plan by plan_id for the given user. Returns True if a row was deleted."""
    db_path = Path(db_path)
    if not db_path.exists():
        return False
    with sqlite3.connect(db_path) as conn:
        cur = conn.execute(
            "DELETE FROM travel_plans WHERE plan_id = ? AND user_id = ?",
            (plan_id, user_id),
        )
        conn.commit()
        return cur.rowcount > 0


def remove_place_from_plan(
    db_path: str | Path,
    plan_id: str,
    place_id: str,
    user_id: str = DEFAULT_USER_ID,
) -> PlanRecord:
    """
    Remove every slot of place_id from a saved plan, recompute costs, and record
    the id in preferences.removed_place_ids so a later regeneration excludes it.
    """
    plan = get_plan(db_path, plan_id, user_id)
    if plan is None:
        raise LookupError(f"Plan '{plan_id}' not found.")
    if not any(s.place.id == place_id for d in plan.itinerary.days for s in d.slots):
        raise LookupError(f"Place '{place_id}' is not in plan '{plan_id}'.")
    itinerary = remove_place(plan.itinerary, place_id)
    removed = list(plan.preferences.removed_place_ids)
    if place_id not in removed:
        removed.append(place_id)
    prefs = plan.preferences.model_copy(update={"removed_place_ids": removed})
    with sqlite3.connect(Path(db_path)) as conn:
        conn.execute(
            "UPDATE travel_plans SET itinerary = ?, preferences = ? WHERE plan_id = ? AND user_id = ?",
            (itinerary.model_dump_json(), prefs.model_dump_json(), plan_id, user_id),
        )
        conn.commit()
    return plan._replace(itinerary=itinerary, preferences=prefs)
