"""
Districts and places tables in the app SQLite DB (the local place catalog).
"""
import json
import sqlite3
from pathlib import Path
from typing import Iterable, NamedTuple

from tripplanner.itinerary.models import OpeningHours, Place

KEDAH_DISTRICTS = (
    ("1", "Kota Setar", "Kota Setar"),
    ("2", "Kubang Pasu", "Kubang Pasu"),
    ("3", "Padang Terap", "Padang Terap"),
    ("4", "Langkawi", "Langkawi"),
    ("5", "Kuala Muda", "Kuala Muda"),
    ("6", "Yan", "Yan"),
    ("7", "Pendang", "Pendang"),
    ("8", "Sik", "Sik"),
    ("9", "Baling", "Baling"),
    ("10", "Kulim", "Kulim"),
    ("11", "Bandar Baharu", "Bandar Baharu"),
    ("12", "Pokok Sena", "Pokok Sena"),
)

# Public order_by names -> ORDER BY clause (all descending)
ORDER_CLAUSES = {
    "rating": "rating DESC, rowid",
    "popularity": "popularity_score DESC, rating DESC, rowid",
}

PLACE_COLUMNS = (
    "place_id, name, district_id, tags, avg_price, lat, lng, opening_hours, "
    "suggested_duration, category, popularity_score, rating, is_active, description, image_path"
)


class DistrictRecord(NamedTuple):
    district_id: str
    name: str
    name_ms: str
    description: str | None = None


def init_app_db(db_path: str | Path) -> None:
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS districts (
                district_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                name_ms TEXT NOT NULL,
                description TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS places (
                place_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                district_id TEXT NOT NULL,
                tags TEXT NOT NULL DEFAULT '[]',
                avg_price REAL NOT NULL DEFAULT 0,
                lat REAL NOT NULL,
                lng REAL NOT NULL,
                opening_hours TEXT NOT NULL DEFAULT '{}',
                suggested_duration INTEGER NOT NULL DEFAULT 60,
                category TEXT NOT NULL,
                popularity_score REAL NOT NULL DEFAULT 0,
                rating REAL NOT NULL DEFAULT 0,
                is_active INTEGER NOT NULL DEFAULT 1,
                description TEXT,
                image_path TEXT,
                FOREIGN KEY (district_id) REFERENCES districts(district_id)
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_places_district ON places(district_id, category, is_active)")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS travel_plans (
                plan_id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                title TEXT NOT NULL,
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                district_ids TEXT NOT NULL,
                status TEXT NOT NULL,
                itinerary TEXT NOT NULL,
                preferences TEXT NOT NULL DEFAULT '{}',
                created_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_travel_plans_user ON travel_plans(user_id)")
        conn.executemany(
            "INSERT OR IGNORE INTO districts (district_id, name, name_ms) VALUES (?, ?, ?)",
            KEDAH_DISTRICTS,
        )
        conn.commit()


def _row_to_place(r: sqlite3.Row) -> Place:
    tags = json.loads(r["tags"] or "[]")
    hours = json.loads(r["opening_hours"] or "{}")
    return Place(
        id=r["place_id"],
        name=r["name"],
        district_id=r["district_id"],
        tags=tags if isinstance(tags, list) else [],
        avg_price=r["avg_price"],
        latitude=r["lat"],
        longitude=r["lng"],
        opening_hours=OpeningHours(**hours) if isinstance(hours, dict) else OpeningHours(),
        suggested_duration=r["suggested_duration"],
        category=r["category"],
        popularity_score=r["popularity_score"],
        rating=r["rating"],
        is_active=bool(r["is_active"]),
        description=r["description"],
        image_path=r["image_path"],
    )


def upsert_places(db_path: str | Path, places: Iterable[Place]) -> int:
    """Insert or replace places by id. Returns the number of rows written."""
    db_path = Path(db_path)
    if not db_path.exists():
        raise ValueError("Database not initialized. Run seed_places.py first.")
    rows = [
        (
            p.id, p.name, p.district_id, json.dumps(p.tags), p.avg_price, p.latitude, p.longitude,
            p.opening_hours.model_dump_json(), p.suggested_duration, p.category,
            p.popularity_score, p.rating, int(p.is_active), p.description, p.image_path,
        )
        for p in places
    ]
    with sqlite3.connect(db_path) as conn:
        conn.executemany(
            f"INSERT OR REPLACE INTO places ({PLACE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            rows,
        )
        conn.commit()
    return len(rows)


def query_places(
    db_path: str | Path,
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
) -> list[Place]:
    """
    Catalog query: filter by district, category, active flag, price ceiling and
    rating/popularity bounds, drop excluded ids, optionally sort and limit.
    Without order_by rows come back in insertion order.
    """
    db_path = Path(db_path)
    if not db_path.exists():
        return []
    if order_by is not None and order_by not in ORDER_CLAUSES:
        raise ValueError(f"Unsupported order_by '{order_by}'. Use: {', '.join(ORDER_CLAUSES)}.")

    where: list[str] = []
    params: list = []
    if district_id is not None:
        where.append("district_id = ?")
        params.append(district_id)
    if categories is not None:
        cats = list(categories)
        if not cats:
            return []
        where.append(f"category IN ({', '.join('?' for _ in cats)})")
        params.extend(cats)
    if is_active is not None:
        where.append("is_active = ?")
        params.append(int(is_active))
    if price_lte is not None:
        where.append("avg_price <= ?")
        params.append(price_lte)
    if min_rating is not None:
        where.append("rating >= ?")
        params.append(min_rating)
    if popularity_lt is not None:
        where.append("popularity_score < ?")
        params.append(popularity_lt)
    excluded = list(exclude_ids)
    if excluded:
        where.append(f"place_id NOT IN ({', '.join('?' for _ in excluded)})")
        params.extend(excluded)

    sql = f"SELECT {PLACE_COLUMNS} FROM places"
    if where:
        sql += " WHERE " + " AND ".join(where)
    sql += " ORDER BY " + (ORDER_CLAUSES[order_by] if order_by else "rowid")
    if limit is not None:
        sql += " LIMIT ?"
        params.append(max(0, int(limit)))

    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.execute(sql, params)
        return [_row_to_place(r) for r in cur.fetchall()]


def get_place(db_path: str | Path, place_id: str) -> Place | None:
    db_path = Path(db_path)
    if not db_path.exists():
        return None
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.execute(f"SELECT {PLACE_COLUMNS} FROM places WHERE place_id = ?", (place_id,))
        r = cur.fetchone()
        return _row_to_place(r) if r is not None else None


def list_districts(db_path: str | Path) -> list[DistrictRecord]:
    db_path = Path(db_path)
    if not db_path.exists():
        return []
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        cur = conn.execute("SELECT district_id, name, name_ms, description FROM districts ORDER BY name")
        return [
            DistrictRecord(
                district_id=r["district_id"],
                name=r["name"],
                name_ms=r["name_ms"],
                description=r["description"],
            )
            for r in cur.fetchall()
        ]


def get_district(db_path: str | Path, district_id: str) -> DistrictRecord | None:
    db_path = Path(db_path)
    if not db_path.exists():
        return None
    with sqlite3.connect(db_path) as conn:
        conn.row_factory = sqlite3.Row
        r = conn.execute(
            "SELECT district_id, name, name_ms, description FROM districts WHERE district_id = ?",
            (district_id,),
        ).fetchone()
        if r is None:
            return None
        return DistrictRecord(
            district_id=r["district_id"],
            name=r["name"],
            name_ms=r["name_ms"],
            description=r["description"],
        )
