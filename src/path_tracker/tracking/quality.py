"""GPS quality tiers, fix usability and the calibration latch."""

from __future__ import annotations

import math
from collections.abc import Iterable

from path_tracker.config import TrackingConfig
from path_tracker.location.models import GPSQualityTier

_DEFAULT_CONFIG = TrackingConfig()


def _valid_accuracy(accuracy: float) -> bool:
    return isinstance(accuracy, (int, float)) and math.isfinite(accuracy) and accuracy >= 0


def evaluate_gps_quality(accuracy: float, config: TrackingConfig = _DEFAULT_CONFIG) -> GPSQualityTier:
    """Classify a horizontal accuracy in metres into a :class:`GPSQualityTier`.

    Total: NaN, negative or infinite accuracy maps to POOR.
    """
    if not _valid_accuracy(accuracy):
        return GPSQualityTier.POOR
    if accuracy <= config.optimal_accuracy_m:
        return GPSQualityTier.OPTIMAL
    if accuracy <= config.good_accuracy_m:
        return GPSQualityTier.GOOD
    if accuracy <= config.fair_accuracy_m:
        return GPSQualityTier.FAIR
    return GPSQualityTier.POOR


def is_gps_usable(
    accuracy: float,
    history: Iterable[float] = (),
    config: TrackingConfig = _DEFAULT_CONFIG,
) -> bool:
    """Return True if a fix with *accuracy* may extend a trajectory.

    A fix above ``unusable_accuracy_m`` is never usable.  With no history the
    ceiling is the only check.  Otherwise a fix that is worse than FAIR *and*
    more than ``accuracy_jump_factor`` times the history mean is a jump and is
    rejected.
    """
    if not _valid_accuracy(accuracy) or accuracy > config.unusable_accuracy_m:
        return False

    past = [a for a in history if _valid_accuracy(a)]
    if not past:
        return True

    mean = sum(past) / len(past)
    is_jump = accuracy > config.fair_accuracy_m and accuracy > config.accuracy_jump_factor * mean
    return not is_jump


class CalibrationLatch:
    """One-way "GPS has settled" flag for a tracking session.

    Latches once ``calibration_min_elapsed_s`` has passed and either the
    current quality is GOOD/OPTIMAL or the accuracy history is full.  Only
    :meth:`reset` (session start/stop) clears it.
    """

    def __init__(self, config: TrackingConfig = _DEFAULT_CONFIG) -> None:
        self._cfg = config
        self._calibrated = False

    @property
    def calibrated(self) -> bool:
        return self._calibrated

    def update(self, elapsed_s: float, quality: GPSQualityTier, history_len: int) -> bool:
        """Feed the latest observation and return the (possibly new) state."""
        if self._calibrated:
            return True
        if elapsed_s >= self._cfg.calibration_min_elapsed_s and (
            quality in (GPSQualityTier.OPTIMAL, GPSQualityTier.GOOD)
            or history_len >= self._cfg.sample_size
        ):
            self._calibrated = True
        return self._calibrated

    def reset(self) -> None:
        self._calibrated = False
