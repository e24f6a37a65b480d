#!/usr/bin/env python3
"""
Seed the app DB with districts and the place catalog.

Usage:
  python scripts/seed_places.py
  python scripts/seed_places.py --csv data/my_places.csv --db data/app.db

CSV columns: place_id, name, district_id, category, tags, avg_price, lat, lng,
hours, closed, suggested_duration, popularity_score, rating, is_active, description.
`tags` and `closed` are ';'-separated; `hours` ("HH:MM-HH:MM") applies to every
weekday not listed in `closed`. Existing places are replaced by matching place_id.
"""
import argparse
import csv
import sys
from pathlib import Path

backend = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(backend))

from pydantic import ValidationError

from tripplanner.data.places_repo import init_app_db, upsert_places
from tripplanner.itinerary.models import WEEKDAYS, OpeningHours, Place


def _split(value: str | None) -> list[str]:
    return [v.strip() for v in (value or "").split(";") if v.strip()]


def row_to_place(row: dict) -> Place | None:
    """Build a Place from one CSV row; None when required fields are missing or invalid."""
    pid = (row.get("place_id") or "").strip()
    if not pid:
        return None
    closed = [d.lower() for d in _split(row.get("closed"))]
    hours = (row.get("hours") or "").strip() or None
    opening = OpeningHours(closed=closed, **{d: hours for d in WEEKDAYS if d not in closed})
    try:
        return Place(
            id=pid,
            name=(row.get("name") or "").strip(),
            district_id=(row.get("district_id") or "").strip(),
            category=(row.get("category") or "attraction").strip().lower(),
            tags=_split(row.get("tags")),
            avg_price=float(row.get("avg_price") or 0),
            latitude=float(row["lat"]),
            longitude=float(row["lng"]),
            opening_hours=opening,
            suggested_duration=int(row.get("suggested_duration") or 60),
            popularity_score=float(row.get("popularity_score") or 0),
            rating=float(row.get("rating") or 0),
            is_active=(row.get("is_active") or "1").strip().lower() in ("1", "true", "yes"),
            description=(row.get("description") or "").strip() or None,
        )
    except (KeyError, TypeError, ValueError, ValidationError):
        return None


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed districts and places (and init app DB)")
    parser.add_argument(
        "--csv",
        default=backend / "data" / "places_seed.csv",
        type=Path,
        help="Places CSV (see module docstring for columns)",
    )
    parser.add_argument(
        "--db",
        default=backend / "data" / "app.db",
        type=Path,
        help="Path to app SQLite DB",
    )
    args = parser.parse_args()

    if not args.csv.exists():
        print(f"Error: CSV not found: {args.csv}", file=sys.stderr)
        return 1

    init_app_db(args.db)

    places: list[Place] = []
    skipped = 0
    with open(args.csv, newline="", encoding="utf-8") as f:
        for row in csv.DictReader(f):
            place = row_to_place(row)
            if place is None:
                skipped += 1
                continue
            places.append(place)
    count = upsert_places(args.db, places)

    print(f"Seeded {count} places into {args.db} (skipped {skipped})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
