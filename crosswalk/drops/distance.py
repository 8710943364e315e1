# FILE: crosswalk/drops/distance.py
"""
Great-circle distance and the coarse bounding box used to pre-filter drops.
"""

import math
from typing import Tuple

EARTH_RADIUS_METERS = 6_371_000.0
METERS_PER_DEGREE_LAT = 111_000.0


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters. Symmetric, and 0.0 for identical points."""
    if lat1 == lat2 and lon1 == lon2:
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a fractionally above 1 for antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def bounding_box(lat: float, lon: float, radius_meters: float) -> Tuple[float, float, float, float]:
    """
    Return (min_lat, max_lat, min_lon, max_lon) enclosing radius_meters around a point.

    Uses 111 km per degree of latitude and a cosine-scaled longitude. Good enough
    as a SQL pre-filter; callers needing exact distance use distance_meters().
    """
    lat_delta = radius_meters / METERS_PER_DEGREE_LAT
    cos_lat = math.cos(math.radians(lat))
    if abs(cos_lat) < 1e-12:
        lon_delta = 180.0
    else:
        lon_delta = radius_meters / (METERS_PER_DEGREE_LAT * abs(cos_lat))
    return (lat - lat_delta, lat + lat_delta, lon - lon_delta, lon + lon_delta)


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"
