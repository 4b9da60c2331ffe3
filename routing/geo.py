"""
Purpose: Straight-line distance math and coordinate validation.
What it does:
- haversine_m(a, b): great-circle distance in metres between two (lat, lon) points
- is_valid_coordinate / validate_coordinate: the range check every other module relies on

Rule: No HTTP calls here. Pricing, sequencing and distance labels all import from this file.
"""

from __future__ import annotations

import math
from typing import Tuple

# Internal coordinate type: (lat, lon)
LatLon = Tuple[float, float]

# Same radius the map layer uses for its distance labels, so fees match what the courier sees.
EARTH_RADIUS_M = 6371000.0


def haversine_m(a: LatLon, b: LatLon) -> float:
    """Return the great-circle distance in metres between two (lat, lon) points."""
    lat1, lon1 = math.radians(a[0]), math.radians(a[1])
    lat2, lon2 = math.radians(b[0]), math.radians(b[1])
    dlat = lat2 - lat1
    dlon = lon2 - lon1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    # clamp: floating noise can push h a hair above 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def is_valid_coordinate(lat: float, lon: float) -> bool:
    """True when both values are finite and inside latitude/longitude ranges."""
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return False

    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


def validate_coordinate(coordinate) -> LatLon:
    """
    Normalize a (lat, lon) pair to a tuple of floats.

    Raises ValueError if the pair is malformed or out of range.
    """
    try:
        lat, lon = coordinate
    except (TypeError, ValueError):
        raise ValueError(f"Expected a (lat, lon) pair, got {coordinate!r}")

    if not is_valid_coordinate(lat, lon):
        raise ValueError(f"Coordinate out of range: ({lat}, {lon})")
    return (float(lat), float(lon))
