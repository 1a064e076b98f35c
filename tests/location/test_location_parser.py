"""LocationParser — raw provider payloads to LocationFix."""

from __future__ import annotations

import math

import pytest

from path_tracker.location.models import LocationFix
from path_tracker.location.parser import LocationParser


def make_provider_raw(**coord_overrides) -> dict:
    """Return a mobile-provider style payload (timestamp in epoch ms)."""
    coords = {
        "latitude": 41.0082,
        "longitude": 28.9784,
        "accuracy": 4.5,
        "speed": 1.4,
        "heading": 87.0,
        "altitude": 35.0,
    }
    coords.update(coord_overrides)
    return {"coords": coords, "timestamp": 1_700_000_000_000}


@pytest.fixture
def parser() -> LocationParser:
    return LocationParser()


def test_parse_provider_shape(parser):
    fix = parser.parse(make_provider_raw())
    assert isinstance(fix, LocationFix)
    assert fix.latitude == pytest.approx(41.0082)
    assert fix.longitude == pytest.approx(28.9784)
    assert fix.accuracy == pytest.approx(4.5)
    assert fix.speed == pytest.approx(1.4)
    assert fix.heading == pytest.approx(87.0)
    assert fix.timestamp == pytest.approx(1_700_000_000.0)


def test_parse_csv_row_with_string_values(parser):
    row = {
        "geoTime": "1700000000500",
        "latitude": "39.9042",
        "longitude": "116.4074",
        "speed": "-1.0",
        "horizontalAccuracy": "12.0",
    }
    fix = parser.parse(row)
    assert fix.latitude == pytest.approx(39.9042)
    assert fix.timestamp == pytest.approx(1_700_000_000.5)
    assert fix.accuracy == pytest.approx(12.0)
    assert fix.speed is None  # negative sentinel means unknown
    assert fix.heading is None


def test_parse_flat_dict_with_seconds_timestamp(parser):
    fix = parser.parse({"lat": 1.0, "lng": 2.0, "timestamp": 1_700_000_000.25, "accuracy": 3})
    assert (fix.latitude, fix.longitude) == (1.0, 2.0)
    assert fix.timestamp == pytest.approx(1_700_000_000.25)


@pytest.mark.parametrize("accuracy", [None, "", "abc", float("nan"), -5.0])
def test_parse_missing_or_bad_accuracy_is_worst(parser, accuracy):
    fix = parser.parse(make_provider_raw(accuracy=accuracy))
    assert math.isinf(fix.accuracy)


def test_parse_normalizes_heading(parser):
    assert parser.parse(make_provider_raw(heading=450.0)).heading == pytest.approx(90.0)
    assert parser.parse(make_provider_raw(heading=-1.0)).heading is None


@pytest.mark.parametrize("key", ["latitude", "longitude"])
def test_parse_missing_coordinate_raises(parser, key):
    raw = make_provider_raw()
    del raw["coords"][key]
    with pytest.raises(ValueError):
        parser.parse(raw)


def test_parse_non_numeric_coordinate_raises(parser):
    with pytest.raises(ValueError):
        parser.parse(make_provider_raw(latitude="north"))


def test_parse_missing_timestamp_raises(parser):
    with pytest.raises(ValueError):
        parser.parse({"latitude": 1.0, "longitude": 2.0})


def test_parse_rejects_non_dict(parser):
    with pytest.raises(ValueError):
        parser.parse(["not", "a", "dict"])  # type: ignore[arg-type]


def test_out_of_range_coordinates_parse_but_are_invalid(parser):
    fix = parser.parse(make_provider_raw(latitude=95.0))
    assert fix.is_valid() is False

