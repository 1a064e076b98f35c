"""FixEventStream — provider polling, parse errors and overflow."""

from __future__ import annotations

import itertools
import time
from unittest.mock import MagicMock

from path_tracker.location.models import LocationFix
from path_tracker.tracking.event_stream import FixEvent, FixEventStream


def _make_fix(t: float = 0.0) -> LocationFix:
    return LocationFix(latitude=41.0, longitude=29.0, accuracy=4.0, timestamp=1_700_000_000.0 + t)


def test_stream_delivers_event():
    """Fixes read by provider+parser reach get_event()."""
    fix = _make_fix()
    provider = MagicMock()
    provider.read_fix.return_value = {"latitude": 41.0}
    parser = MagicMock()
    parser.parse.return_value = fix

    stream = FixEventStream(provider, parser, target_hz=200, queue_maxsize=10)
    stream.start()
    event = stream.get_event(timeout=1.0)
    stream.stop()

    assert isinstance(event, FixEvent)
    assert event.fix is fix


def test_stream_no_event_when_provider_idle():
    provider = MagicMock()
    provider.read_fix.return_value = None
    parser = MagicMock()

    stream = FixEventStream(provider, parser, target_hz=10, queue_maxsize=10)
    stream.start()
    event = stream.get_event(timeout=0.2)
    stream.stop()

    assert event is None
    parser.parse.assert_not_called()


def test_stream_skips_unparseable_fix():
    provider = MagicMock()
    provider.read_fix.return_value = {"latitude": "north"}
    parser = MagicMock()
    parser.parse.side_effect = ValueError("missing a numeric 'latitude'")

    stream = FixEventStream(provider, parser, target_hz=200, queue_maxsize=10)
    stream.start()
    event = stream.get_event(timeout=0.2)
    stream.stop()

    assert event is None
    assert stream.rejected >= 1


def test_stream_drop_oldest_when_full():
    """Queue size never exceeds maxsize even under rapid production."""
    provider = MagicMock()
    provider.read_fix.return_value = {"x": 1}
    parser = MagicMock()
    ticks = itertools.count()
    parser.parse.side_effect = lambda raw: _make_fix(next(ticks))

    stream = FixEventStream(provider, parser, target_hz=1000, queue_maxsize=3)
    stream.start()
    time.sleep(0.1)
    stream.stop()

    assert stream.queue_size() <= 3
    assert stream.dropped > 0


def test_get_event_without_waiting():
    stream = FixEventStream(MagicMock(), MagicMock())
    assert stream.get_event(timeout=0) is None
    assert stream.running is False


def test_poll_once_skips_repeated_and_older_fixes():
    """A provider re-delivering its cached fix produces a single event."""
    provider = MagicMock()
    provider.read_fix.return_value = {"latitude": 41.0}
    parser = MagicMock()
    parser.parse.side_effect = [_make_fix(5.0), _make_fix(5.0), _make_fix(3.0), _make_fix(6.0)]

    stream = FixEventStream(provider, parser)
    assert [stream.poll_once() for _ in range(4)] == [True, False, False, True]
    assert stream.stale == 2
    assert stream.queue_size() == 2
    assert stream.get_event(timeout=0).fix.timestamp == _make_fix(5.0).timestamp


def test_poll_once_counts_unparseable_fix():
    provider = MagicMock()
    provider.read_fix.return_value = {"latitude": "north"}
    parser = MagicMock()
    parser.parse.side_effect = ValueError("missing a numeric 'latitude'")

    stream = FixEventStream(provider, parser)
    assert stream.poll_once() is False
    assert stream.rejected == 1
    assert stream.queue_size() == 0


def test_event_age_grows():
    event = FixEvent(fix=_make_fix(), received_at=time.monotonic() - 2.0)
    assert event.age_s >= 2.0
