"""Stationary detection and its caller-side debounce."""

from __future__ import annotations

import math
from collections.abc import Iterable

from path_tracker.config import TrackingConfig
from path_tracker.geo.distance import max_pairwise_distance
from path_tracker.location.models import LocationFix

_DEFAULT_CONFIG = TrackingConfig()


def is_stationary(
    speed: float | None,
    recent_locations: Iterable[LocationFix],
    config: TrackingConfig = _DEFAULT_CONFIG,
) -> bool:
    """Instantaneous stationary classification.

    Stationary when the reported speed is below ``stationary_speed_mps`` *and*
    every pair of recent locations lies within ``stationary_radius_m``.
    Unknown, negative or NaN speed counts as 0.  Fewer than two locations is
    never stationary.
    """
    pts = [(f.latitude, f.longitude) for f in recent_locations]
    if len(pts) < 2:
        return False
    if speed is None or not math.isfinite(speed) or speed < 0:
        speed = 0.0
    if speed >= config.stationary_speed_mps:
        return False
    return max_pairwise_distance(pts) < config.stationary_radius_m


class StationaryDebouncer:
    """Hysteresis over :func:`is_stationary` readings.

    Moving → stationary needs *confirm_count* consecutive stationary readings;
    stationary → moving applies on the first moving reading.
    """

    def __init__(self, confirm_count: int = 3) -> None:
        if confirm_count < 1:
            raise ValueError("confirm_count must be >= 1")
        self._confirm = confirm_count
        self._streak = 0
        self._stationary = False

    @property
    def stationary(self) -> bool:
        return self._stationary

    def update(self, instantaneous: bool) -> bool:
        """Feed one classification and return the debounced state."""
        if not instantaneous:
            self._streak = 0
            self._stationary = False
            return False
        self._streak += 1
        if self._streak >= self._confirm:
            self._stationary = True
        return self._stationary

    def reset(self) -> None:
        self._streak = 0
        self._stationary = False
