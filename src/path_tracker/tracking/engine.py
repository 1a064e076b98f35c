"""PathTrackingEngine — per-fix decision over externally owned rolling windows."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from path_tracker.config import TrackingConfig
from path_tracker.geo.distance import calculate_bearing, distance_m
from path_tracker.location.models import GPSQualityTier, LocationFix, TrackedPoint
from path_tracker.tracking.collection import should_collect_point
from path_tracker.tracking.motion import is_stationary
from path_tracker.tracking.quality import evaluate_gps_quality, is_gps_usable


@dataclass(frozen=True)
class TrackingDecision:
    """Everything the engine concluded about one fix."""

    accept: bool
    """True if the fix should be appended to the current path."""

    quality: GPSQualityTier
    usable: bool
    stationary: bool
    """Instantaneous (not debounced) stationary classification."""

    bearing: float | None
    """Bearing from the last accepted point; None when rejected or first in path."""

    distance_m: float | None
    """Distance from the last accepted point; None when there is none."""

    reason: str
    """``"accepted"``, ``"invalid"``, ``"unusable"`` or ``"filtered"``."""


class PathTrackingEngine:
    """Stateless combination of the quality, motion and collection rules.

    The caller owns the accuracy history, the recent-location window and the
    last accepted point; the engine only reads them.

    Parameters
    ----------
    config:
        Threshold set; defaults to :class:`~path_tracker.config.TrackingConfig`.
    """

    def __init__(self, config: TrackingConfig | None = None) -> None:
        self._cfg = config or TrackingConfig()

    @property
    def config(self) -> TrackingConfig:
        return self._cfg

    def evaluate(
        self,
        fix: LocationFix,
        accuracy_history: Iterable[float],
        recent_locations: Iterable[LocationFix],
        last_point: TrackedPoint | None,
    ) -> TrackingDecision:
        """Evaluate *fix* against the supplied windows.  Never raises on bad input."""
        quality = evaluate_gps_quality(fix.accuracy, self._cfg)
        if not fix.is_valid():
            return TrackingDecision(False, GPSQualityTier.POOR, False, False, None, None, "invalid")

        usable = is_gps_usable(fix.accuracy, accuracy_history, self._cfg)
        stationary = is_stationary(fix.speed, recent_locations, self._cfg)

        moved: float | None = None
        if last_point is not None:
            moved = distance_m(last_point.latitude, last_point.longitude, fix.latitude, fix.longitude)

        if not usable:
            return TrackingDecision(False, quality, False, stationary, None, moved, "unusable")
        if not should_collect_point(fix, last_point, self._cfg):
            return TrackingDecision(False, quality, True, stationary, None, moved, "filtered")

        bearing = None
        if last_point is not None:
            bearing = calculate_bearing(last_point.latitude, last_point.longitude, fix.latitude, fix.longitude)
        return TrackingDecision(True, quality, True, stationary, bearing, moved, "accepted")

    def to_point(self, fix: LocationFix, decision: TrackingDecision) -> TrackedPoint:
        """Build the :class:`TrackedPoint` for an accepted *fix*."""
        return TrackedPoint(
            latitude=fix.latitude,
            longitude=fix.longitude,
            timestamp=fix.timestamp,
            accuracy=fix.accuracy,
            quality=decision.quality,
            bearing=decision.bearing,
            speed=fix.speed,
        )
