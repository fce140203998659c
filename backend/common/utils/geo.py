"""Great-circle distance and bounding boxes on a spherical earth."""

from math import radians, cos, sin, asin, sqrt, degrees
from typing import List, Tuple

EARTH_RADIUS_METERS = 6371000


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters between (lat1, lon1) and (lat2, lon2), in degrees."""
    phi1, lam1, phi2, lam2 = (radians(float(v)) for v in (lat1, lon1, lat2, lon2))
    h = sin((phi2 - phi1) / 2) ** 2 + cos(phi1) * cos(phi2) * sin((lam2 - lam1) / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * asin(sqrt(h))


def bounding_box(lat: float, lon: float, radius_km: float) -> Tuple[float, float, float, float]:
    """
    Approximate lat/lon box around a point, used as a cheap pre-filter
    before the exact haversine check.

    Returns:
        (min_lat, max_lat, min_lon, max_lon)
    """
    center_lat, center_lon = float(lat), float(lon)
    lat_delta = degrees(float(radius_km) * 1000 / EARTH_RADIUS_METERS)
    # Longitude degrees shrink towards the poles
    lon_delta = lat_delta / max(abs(cos(radians(center_lat))), 1e-6)
    return center_lat - lat_delta, center_lat + lat_delta, center_lon - lon_delta, center_lon + lon_delta


def longitude_ranges(min_lon: float, max_lon: float) -> List[Tuple[float, float]]:
    """
    Split a longitude span into ranges inside [-180, 180].

    A span crossing the antimeridian becomes two ranges; a span of 360
    degrees or more (boxes near the poles) covers every longitude.
    """
    if max_lon - min_lon >= 360:
        return [(-180.0, 180.0)]
    if min_lon < -180:
        return [(min_lon + 360, 180.0), (-180.0, max_lon)]
    if max_lon > 180:
        return [(min_lon, 180.0), (-180.0, max_lon - 360)]
    return [(min_lon, max_lon)]
