"""Great-circle geometry on a spherical Earth."""

from path_tracker.geo.distance import (
    EARTH_RADIUS_M,
    calculate_bearing,
    distance_m,
    max_pairwise_distance,
)

__all__ = [
    "EARTH_RADIUS_M",
    "calculate_bearing",
    "distance_m",
    "max_pairwise_distance",
]
