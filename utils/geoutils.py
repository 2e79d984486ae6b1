# utils/geoutils.py
import math

EARTH_RADIUS_M = 6371000.0


# Haversine distance
def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Compute Haversine distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)
    a = math.sin(dphi/2)**2 + math.cos(phi1)*math.cos(phi2)*math.sin(dlambda/2)**2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_radius(
    lat: float,
    lng: float,
    center_lat: float,
    center_lng: float,
    radius_m: float,
) -> tuple[bool, float]:
    """
    Return (inside, distance) for a point against a circular fence.
    A point exactly on the boundary counts as inside.
    """
    distance = distance_meters(lat, lng, center_lat, center_lng)
    return distance <= radius_m, distance
