"""Great-circle geometry for the track analysis engine.

Every distance in the package is measured here so that there is exactly
one geodesic primitive to test.
"""

from __future__ import annotations

import math
from typing import Protocol

EARTH_RADIUS_KM: float = 6371.0


class HasCoordinates(Protocol):
    """Anything exposing a latitude and a longitude in decimal degrees."""

    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


def distance_between(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the haversine distance in kilometres between two coordinates.

    NaN inputs propagate to a NaN result; callers validate upstream.
    """
    d_lat: float = math.radians(lat2 - lat1)
    d_lon: float = math.radians(lon2 - lon1)
    a: float = (
        math.sin(d_lat / 2.0) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2.0) ** 2
    )
    c: float = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_KM * c


def distance(a: HasCoordinates, b: HasCoordinates) -> float:
    """Return the great-circle distance in kilometres between two points.

    Args:
        a: First point (any object with ``latitude`` and ``longitude``).
        b: Second point.

    Returns:
        Distance in kilometres.
    """
    return distance_between(a.latitude, a.longitude, b.latitude, b.longitude)
