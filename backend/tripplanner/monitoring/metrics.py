"""In-memory request and trip-generation counters for the /metrics endpoint."""
import time
from collections.abc import MutableMapping
from threading import Lock

_start_time = time.monotonic()
_counts: MutableMapping[str, int] = {}
_lock = Lock()


def _bump(key: str, amount: int = 1) -> None:
    with _lock:
        _counts[key] = _counts.get(key, 0) + amount


def record_request(status_code: int) -> None:
    if 200 <= status_code < 300:
        bucket = "2xx"
    elif 400 <= status_code < 500:
        bucket = "4xx"
    elif status_code >= 500:
        bucket = "5xx"
    else:
        bucket = "other"
    _bump(f"requests_{bucket}")


def record_trip(slot_count: int, regenerated: bool) -> None:
    """Count one generated itinerary; empty ones (no slots on any day) are tracked separately."""
    _bump("trips_generated")
    if regenerated:
        _bump("trips_regenerated")
    if slot_count == 0:
        _bump("trips_empty")
    _bump("slots_scheduled", slot_count)


def get_metrics() -> dict:
    with _lock:
        counts = dict(_counts)
    uptime_seconds = time.monotonic() - _start_time
    return {
        "requests_total": sum(v for k, v in counts.items() if k.startswith("requests_")),
        "requests_2xx": counts.get("requests_2xx", 0),
        "requests_4xx": counts.get("requests_4xx", 0),
        "requests_5xx": counts.get("requests_5xx", 0),
        "trips_generated": counts.get("trips_generated", 0),
        "trips_regenerated": counts.get("trips_regenerated", 0),
        "trips_empty": counts.get("trips_empty", 0),
        "slots_scheduled": counts.get("slots_scheduled", 0),
        "uptime_seconds": round(uptime_seconds, 1),
    }
