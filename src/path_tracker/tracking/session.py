"""TrackingSession — the caller side of the engine for one user's tracking run."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from path_tracker.config import TrackingConfig
from path_tracker.location.models import LocationFix, TrackedPoint
from path_tracker.tracking.collection import PathBuffer
from path_tracker.tracking.engine import PathTrackingEngine, TrackingDecision
from path_tracker.tracking.motion import StationaryDebouncer
from path_tracker.tracking.quality import CalibrationLatch, evaluate_gps_quality
from path_tracker.tracking.window import RollingWindow

_logger = logging.getLogger(__name__)


@dataclass
class FixResult:
    """Outcome of feeding one fix to a :class:`TrackingSession`."""

    decision: TrackingDecision
    collected: bool
    calibrated: bool
    stationary: bool
    """Debounced stationary state after this fix."""

    point: TrackedPoint | None = None
    flushed: list[list[TrackedPoint]] = field(default_factory=list)
    skip_reason: str | None = None
    """Why an accepted decision was not collected (``"calibrating"``, ``"stationary"``)
    or why the fix was not evaluated at all (``"out_of_order"``)."""


class TrackingSession:
    """Owns all mutable tracking state for one user between start and stop.

    The user id is fixed at construction, so fixes delivered late by a
    background callback always land on the session that started them.  All
    methods must be called from a single logical sequence.

    Parameters
    ----------
    user_id:
        Owner of every path this session flushes.
    writer:
        Object with ``submit(user_id, points)``; flushed paths are handed over
        without waiting for the write.
    config:
        Threshold set.
    """

    def __init__(
        self,
        user_id: str,
        writer,
        config: TrackingConfig | None = None,
    ) -> None:
        self.user_id = user_id
        self._writer = writer
        self._cfg = config or TrackingConfig()
        self._engine = PathTrackingEngine(self._cfg)
        self._accuracy_history: RollingWindow[float] = RollingWindow(self._cfg.sample_size)
        self._recent: RollingWindow[LocationFix] = RollingWindow(self._cfg.stationary_check_count)
        self._latch = CalibrationLatch(self._cfg)
        self._debouncer = StationaryDebouncer(self._cfg.stationary_debounce_count)
        self._buffer = PathBuffer(self._cfg)
        self._started_at: float | None = None
        self._last_fix_time: float | None = None
        self._active = True
        self.fixes_seen = 0
        self.points_collected = 0
        self.paths_submitted = 0
        _logger.info("Tracking session started for user %s", user_id)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self._active

    @property
    def calibrated(self) -> bool:
        return self._latch.calibrated

    @property
    def stationary(self) -> bool:
        return self._debouncer.stationary

    @property
    def buffered_points(self) -> int:
        return len(self._buffer)

    def process(self, fix: LocationFix) -> FixResult:
        """Run one fix through the engine and update session state.

        Raises
        ------
        RuntimeError
            If the session has been stopped.
        """
        if not self._active:
            raise RuntimeError(f"tracking session for {self.user_id} is stopped")
        self.fixes_seen += 1

        if not fix.is_valid():
            _logger.warning("Ignoring malformed fix for user %s: %r", self.user_id, fix)
            decision = self._engine.evaluate(fix, (), (), None)
            return FixResult(decision, False, self.calibrated, self.stationary)

        if self._last_fix_time is not None and fix.timestamp < self._last_fix_time:
            _logger.warning(
                "Ignoring out-of-order fix for user %s (%.3f < %.3f)",
                self.user_id,
                fix.timestamp,
                self._last_fix_time,
            )
            quality = evaluate_gps_quality(fix.accuracy, self._cfg)
            decision = TrackingDecision(False, quality, False, False, None, None, "filtered")
            return FixResult(decision, False, self.calibrated, self.stationary, skip_reason="out_of_order")
        self._last_fix_time = fix.timestamp
        if self._started_at is None:
            self._started_at = fix.timestamp

        # The current position is part of the spread being checked; its
        # accuracy is judged against the samples before it.
        self._recent.append(fix)
        decision = self._engine.evaluate(fix, self._accuracy_history, self._recent, self._buffer.last())
        self._accuracy_history.append(fix.accuracy)

        # Unknown (inf) accuracies say nothing about the receiver settling.
        known = sum(1 for a in self._accuracy_history if math.isfinite(a))
        calibrated = self._latch.update(fix.timestamp - self._started_at, decision.quality, known)
        stationary = self._debouncer.update(decision.stationary)

        result = FixResult(decision, False, calibrated, stationary)
        if not decision.accept:
            _logger.debug("Fix rejected (%s) for user %s", decision.reason, self.user_id)
            return result
        if not calibrated:
            result.skip_reason = "calibrating"
            return result
        if stationary:
            result.skip_reason = "stationary"
            return result

        point = self._engine.to_point(fix, decision)
        result.collected = True
        result.point = point
        self.points_collected += 1
        result.flushed = self._buffer.add(point)
        for path in result.flushed:
            self._submit(path)
        return result

    def stop(self) -> list[TrackedPoint] | None:
        """End the session: flush the in-flight path (if >= 2 points) and reset all state.

        Returns the flushed path, or None if nothing was worth saving.
        Calling stop twice is harmless.
        """
        if not self._active:
            return None
        path = self._buffer.drain()
        if path is not None:
            self._submit(path)
        self._accuracy_history.clear()
        self._recent.clear()
        self._latch.reset()
        self._debouncer.reset()
        self._started_at = None
        self._last_fix_time = None
        self._active = False
        _logger.info(
            "Tracking session stopped for user %s: %d fixes, %d points, %d paths",
            self.user_id,
            self.fixes_seen,
            self.points_collected,
            self.paths_submitted,
        )
        return path

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _submit(self, path: list[TrackedPoint]) -> None:
        self.paths_submitted += 1
        _logger.info("Flushing %d-point path for user %s", len(path), self.user_id)
        self._writer.submit(self.user_id, path)
