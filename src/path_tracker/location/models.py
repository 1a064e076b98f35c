"""Location data models."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum


class GPSQualityTier(Enum):
    """Accuracy-derived quality classification, best first."""

    OPTIMAL = "optimal"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @property
    def rank(self) -> int:
        """0 for OPTIMAL … 3 for POOR; higher is worse."""
        return _TIER_RANK[self]


_TIER_RANK = {
    GPSQualityTier.OPTIMAL: 0,
    GPSQualityTier.GOOD: 1,
    GPSQualityTier.FAIR: 2,
    GPSQualityTier.POOR: 3,
}


@dataclass(frozen=True)
class LocationFix:
    """A single raw sample from the location provider."""

    latitude: float
    """Decimal degrees [-90, 90]."""

    longitude: float
    """Decimal degrees [-180, 180]."""

    accuracy: float
    """Horizontal accuracy radius in metres; larger is worse."""

    timestamp: float
    """Unix epoch seconds."""

    speed: float | None = None
    """Instantaneous speed in m/s. ``None`` or negative means unknown."""

    heading: float | None = None
    """Compass bearing [0, 360) if the platform reports one."""

    def is_valid(self) -> bool:
        """Return True if coordinates and timestamp are finite and in range."""
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and math.isfinite(self.timestamp)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


@dataclass(frozen=True)
class TrackedPoint:
    """An accepted fix enriched with derived fields; one element of a path."""

    latitude: float
    longitude: float
    timestamp: float
    accuracy: float
    quality: GPSQualityTier
    bearing: float | None = None
    """Degrees from the previous point; ``None`` for the first point of a path."""

    speed: float | None = None

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict."""
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "timestamp": self.timestamp,
            "accuracy": self.accuracy if math.isfinite(self.accuracy) else None,
            "quality": self.quality.value,
            "bearing": self.bearing,
            "speed": self.speed,
        }
