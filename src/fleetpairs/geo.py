"""Great-circle distance."""

from __future__ import annotations

import math

from fleetpairs._constants import EARTH_RADIUS_MILES
from fleetpairs.models.position import Coordinate

__all__ = ["EARTH_RADIUS_MILES", "haversine_miles"]


def haversine_miles(a: Coordinate, b: Coordinate) -> float:
    """Surface distance between *a* and *b* in statute miles.

    Symmetric, and exactly ``0.0`` for identical coordinates. NaN inputs
    propagate; callers filter unknown positions first.
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(h))
