"""
Visiting order: greedy nearest neighbour anchored at the highest-ranked place.
Not an optimal tour; ties go to the earliest remaining place so output is deterministic.
"""
from tripplanner.data.geo import haversine_distance_km
from tripplanner.itinerary.models import Place


def distance_between(a: Place, b: Place) -> float:
    return haversine_distance_km(a.latitude, a.longitude, b.latitude, b.longitude)


def order_by_proximity(places: list[Place]) -> list[Place]:
    """Return a permutation of places; the first input place stays first."""
    if not places:
        return []
    remaining = list(places)
    current = remaining.pop(0)
    ordered = [current]
    while remaining:
        nearest_index = 0
        nearest_km = float("inf")
        for i, candidate in enumerate(remaining):
            d = distance_between(current, candidate)
            if d < nearest_km:
                nearest_km = d
                nearest_index = i
        current = remaining.pop(nearest_index)
        ordered.append(current)
    return ordered
