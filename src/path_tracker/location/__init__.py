"""Location data: models, raw-fix parsing, replay and path persistence.

Public API
----------
LocationFix        - single raw sample from a location provider
TrackedPoint       - accepted fix enriched with quality and bearing
GPSQualityTier     - OPTIMAL / GOOD / FAIR / POOR
LocationParser     - raw provider dict → LocationFix
CsvReplayProvider  - replays an exported track CSV
PathStorage        - SQLite persistence sink for discovered paths
"""

from path_tracker.location.models import GPSQualityTier, LocationFix, TrackedPoint
from path_tracker.location.parser import LocationParser
from path_tracker.location.replay import CsvReplayProvider
from path_tracker.location.storage import PathStorage

__all__ = [
    "CsvReplayProvider",
    "GPSQualityTier",
    "LocationFix",
    "LocationParser",
    "PathStorage",
    "TrackedPoint",
]
