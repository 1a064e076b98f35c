"""TrackingConfig — every path-tracking threshold in one place.

Values can be overridden through ``PATH_TRACKER_<FIELD>`` environment
variables (e.g. ``PATH_TRACKER_MIN_MOVEMENT_M=8``).  Entry points call
``load_dotenv()`` first so a project ``.env`` file is honoured.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass

ENV_PREFIX = "PATH_TRACKER_"


@dataclass(frozen=True)
class TrackingConfig:
    """Immutable threshold set shared by the engine, the session and the web layer."""

    # GPS quality tiers (metres, inclusive upper bounds)
    optimal_accuracy_m: float = 5.0
    good_accuracy_m: float = 10.0
    fair_accuracy_m: float = 20.0
    unusable_accuracy_m: float = 100.0
    accuracy_jump_factor: float = 2.0

    # Calibration
    sample_size: int = 5
    calibration_min_elapsed_s: float = 10.0

    # Stationary detection
    stationary_speed_mps: float = 0.5
    stationary_radius_m: float = 5.0
    stationary_check_count: int = 5
    stationary_debounce_count: int = 3

    # Point collection
    min_movement_m: float = 5.0
    min_interval_s: float = 2.0
    fast_movement_factor: float = 3.0

    # Path buffer flushing
    max_segment_gap_m: float = 500.0
    max_segment_duration_s: float = 1800.0
    max_segment_points: int = 500

    def __post_init__(self) -> None:
        tiers = (
            self.optimal_accuracy_m,
            self.good_accuracy_m,
            self.fair_accuracy_m,
            self.unusable_accuracy_m,
        )
        if any(b <= a for a, b in zip(tiers, tiers[1:])) or tiers[0] <= 0:
            raise ValueError(f"accuracy tier cut points must be positive and strictly increasing: {tiers}")
        for name in ("sample_size", "stationary_check_count", "stationary_debounce_count"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.max_segment_points < 2:
            raise ValueError("max_segment_points must be >= 2")

    @property
    def fast_movement_m(self) -> float:
        """Distance above which the sampling interval no longer throttles collection."""
        return self.min_movement_m * self.fast_movement_factor

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> TrackingConfig:
        """Build a config from defaults overridden by ``PATH_TRACKER_*`` variables.

        Raises
        ------
        ValueError
            If a variable is set but cannot be parsed as the field's type.
        """
        env = os.environ if environ is None else environ
        overrides: dict = {}
        for f in dataclasses.fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = env.get(key)
            if raw is None or raw == "":
                continue
            caster = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = caster(raw)
            except ValueError as exc:
                raise ValueError(f"{key}={raw!r} is not a valid {caster.__name__}") from exc
        return cls(**overrides)
