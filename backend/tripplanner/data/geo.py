"""
Straight-line geography: haversine distance and a fixed-speed travel estimate.
"""
import math

# Earth radius in km (WGS84 approximate)
EARTH_RADIUS_KM = 6371.0

# Heuristic: average road speed for straight-line travel time estimate
AVERAGE_SPEED_KMH = 40.0


def haversine_distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Return great-circle distance between two points in kilometers.
    Arguments in degrees. NaN inputs propagate to the result.
    """
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)
    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(dlng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def travel_minutes(distance_km: float) -> int:
    """Whole minutes (rounded up) to cover distance_km at AVERAGE_SPEED_KMH."""
    if distance_km <= 0:
        return 0
    return math.ceil(distance_km / AVERAGE_SPEED_KMH * 60)
