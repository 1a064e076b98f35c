"""Haversine distance and initial bearing between lat/lon points."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

EARTH_RADIUS_M = 6_371_000.0  # mean Earth radius

# Points closer than this are treated as identical for bearing purposes.
_SAME_POINT_M = 1e-6


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two points given in degrees.

    Ignores ellipsoid flattening.  The result is symmetric in its arguments
    and exactly 0.0 for identical points.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2.0) ** 2
    a = min(1.0, max(0.0, a))  # rounding can push a marginally outside [0, 1]
    c = 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))
    return EARTH_RADIUS_M * c


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial great-circle bearing (forward azimuth) from point 1 to point 2.

    Returns degrees in ``[0, 360)`` with 0 = north, 90 = east.  When the two
    points coincide (or any input is non-finite) the direction is undefined
    and ``0.0`` is returned instead of NaN.
    """
    if not all(math.isfinite(v) for v in (lat1, lon1, lat2, lon2)):
        return 0.0
    if distance_m(lat1, lon1, lat2, lon2) < _SAME_POINT_M:
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_lambda = math.radians(lon2 - lon1)

    x = math.sin(d_lambda) * math.cos(phi2)
    y = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    bearing = math.degrees(math.atan2(x, y)) % 360.0
    # -1e-15 % 360.0 rounds to 360.0
    return 0.0 if bearing >= 360.0 else bearing


def max_pairwise_distance(points: Iterable[Sequence[float]]) -> float:
    """Largest distance in metres between any two ``(lat, lon)`` pairs.

    Returns 0.0 for fewer than two points.
    """
    pts = list(points)
    best = 0.0
    for i in range(len(pts)):
        lat_i, lon_i = pts[i][0], pts[i][1]
        for j in range(i + 1, len(pts)):
            d = distance_m(lat_i, lon_i, pts[j][0], pts[j][1])
            if d > best:
                best = d
    return best
