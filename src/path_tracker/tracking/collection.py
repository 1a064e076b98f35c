"""Point-collection decision and the path buffer it feeds."""

from __future__ import annotations

import dataclasses
import logging

from path_tracker.config import TrackingConfig
from path_tracker.geo.distance import distance_m
from path_tracker.location.models import LocationFix, TrackedPoint
from path_tracker.tracking.quality import is_gps_usable

_logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = TrackingConfig()


def should_collect_point(
    new_fix: LocationFix,
    last_point: TrackedPoint | None,
    config: TrackingConfig = _DEFAULT_CONFIG,
) -> bool:
    """Decide whether *new_fix* becomes the next trajectory point.

    Rules, in order:

    1. a malformed fix is rejected;
    2. the first point of a path (``last_point is None``) is accepted;
    3. accuracy above the unusable ceiling is rejected;
    4. movement below ``min_movement_m`` is jitter and is rejected;
    5. a fix arriving sooner than ``min_interval_s`` is rejected unless it
       moved at least ``fast_movement_factor × min_movement_m``.

    Pure and deterministic.
    """
    if not new_fix.is_valid():
        return False
    if last_point is None:
        return True
    if not is_gps_usable(new_fix.accuracy, (), config):
        return False

    moved = distance_m(last_point.latitude, last_point.longitude, new_fix.latitude, new_fix.longitude)
    if moved < config.min_movement_m:
        return False

    elapsed = max(0.0, new_fix.timestamp - last_point.timestamp)
    if elapsed < config.min_interval_s and moved < config.fast_movement_m:
        return False
    return True


class PathBuffer:
    """Accumulates accepted points into contiguous paths.

    :meth:`add` flushes when the new point is farther than
    ``max_segment_gap_m`` from the previous one (path break: the new point
    starts the next path), or when the segment exceeds
    ``max_segment_duration_s`` / reaches ``max_segment_points`` (the new point
    closes the path and also seeds the next one).  Paths with fewer than two
    points are dropped instead of flushed.
    """

    def __init__(self, config: TrackingConfig = _DEFAULT_CONFIG) -> None:
        self._cfg = config
        self._points: list[TrackedPoint] = []
        self.start_time: float | None = None

    @property
    def points(self) -> list[TrackedPoint]:
        return list(self._points)

    def last(self) -> TrackedPoint | None:
        return self._points[-1] if self._points else None

    def __len__(self) -> int:
        return len(self._points)

    def add(self, point: TrackedPoint) -> list[list[TrackedPoint]]:
        """Append *point* and return the paths completed by this addition (0 or 1)."""
        prev = self.last()
        if prev is None:
            self._reset([point])
            return []

        gap = distance_m(prev.latitude, prev.longitude, point.latitude, point.longitude)
        if gap > self._cfg.max_segment_gap_m:
            _logger.info("Path break: %.0f m gap exceeds %.0f m", gap, self._cfg.max_segment_gap_m)
            flushed = self._take()
            self._reset([dataclasses.replace(point, bearing=None)])
            return flushed

        self._points.append(point)
        too_long = point.timestamp - self.start_time > self._cfg.max_segment_duration_s
        too_big = len(self._points) >= self._cfg.max_segment_points
        if too_long or too_big:
            flushed = self._take()
            self._reset([dataclasses.replace(point, bearing=None)])
            return flushed
        return []

    def drain(self) -> list[TrackedPoint] | None:
        """Return the buffered path if it has >= 2 points, then empty the buffer."""
        flushed = self._take()
        self._reset([])
        return flushed[0] if flushed else None

    def _take(self) -> list[list[TrackedPoint]]:
        if len(self._points) < 2:
            if self._points:
                _logger.debug("Discarding %d-point path", len(self._points))
            return []
        return [list(self._points)]

    def _reset(self, points: list[TrackedPoint]) -> None:
        self._points = points
        self.start_time = points[0].timestamp if points else None
