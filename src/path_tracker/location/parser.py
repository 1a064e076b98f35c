"""LocationParser — converts raw provider payloads to LocationFix."""

from __future__ import annotations

import math
from typing import Any

from path_tracker.location.models import LocationFix

# Accepted key aliases per field, first match wins.  Covers the mobile
# provider's ``coords`` object and exported CSV rows.
_LAT_KEYS = ("latitude", "lat")
_LON_KEYS = ("longitude", "lon", "lng")
_ACCURACY_KEYS = ("accuracy", "horizontalAccuracy", "horizontal_accuracy")
_SPEED_KEYS = ("speed",)
_HEADING_KEYS = ("heading", "course")
_TIME_MS_KEYS = ("timestamp", "geoTime")

# Epoch values above this are milliseconds (1e11 s is year ~5138).
_MS_CUTOFF = 1e11


def _first(raw: dict, keys: tuple[str, ...]) -> Any:
    for k in keys:
        if k in raw and raw[k] not in (None, ""):
            return raw[k]
    return None


def _to_float(value: Any) -> float | None:
    """Return *value* as float, or None if it is missing or not numeric.

    Strings are accepted because some Android builds report coordinates as text.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _require(raw: dict, keys: tuple[str, ...]) -> float:
    val = _to_float(_first(raw, keys))
    if val is None or not math.isfinite(val):
        raise ValueError(f"raw fix is missing a numeric {keys[0]!r}: {raw!r}")
    return val


class LocationParser:
    """Parses a raw location payload into a :class:`LocationFix`.

    Two shapes are understood:

    * the mobile provider shape ``{"coords": {...}, "timestamp": <epoch ms>}``
    * a flat dict, e.g. a CSV row with ``geoTime``/``horizontalAccuracy``

    Missing or non-finite accuracy becomes ``inf`` (worst possible); negative
    or missing speed becomes ``None``; heading is normalized to [0, 360).
    Coordinates and timestamp are mandatory.
    """

    def parse(self, raw: dict) -> LocationFix:
        """Convert *raw* to a :class:`LocationFix`.

        Raises
        ------
        ValueError
            If coordinates or timestamp are missing or not numeric.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"raw fix must be a dict, got {type(raw).__name__}")
        coords = raw.get("coords")
        fields = coords if isinstance(coords, dict) else raw

        lat = _require(fields, _LAT_KEYS)
        lon = _require(fields, _LON_KEYS)
        ts = _require(raw if _first(raw, _TIME_MS_KEYS) is not None else fields, _TIME_MS_KEYS)
        if abs(ts) > _MS_CUTOFF:
            ts /= 1000.0

        accuracy = _to_float(_first(fields, _ACCURACY_KEYS))
        if accuracy is None or not math.isfinite(accuracy) or accuracy < 0:
            accuracy = math.inf

        speed = _to_float(_first(fields, _SPEED_KEYS))
        if speed is not None and (not math.isfinite(speed) or speed < 0):
            speed = None

        heading = _to_float(_first(fields, _HEADING_KEYS))
        if heading is not None:
            heading = heading % 360.0 if math.isfinite(heading) and heading >= 0 else None

        return LocationFix(
            latitude=lat,
            longitude=lon,
            accuracy=accuracy,
            timestamp=ts,
            speed=speed,
            heading=heading,
        )
