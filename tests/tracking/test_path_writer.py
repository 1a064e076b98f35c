"""PathWriter / NullPathWriter."""

from __future__ import annotations

import sqlite3
from unittest.mock import MagicMock

from path_tracker.location.models import GPSQualityTier, TrackedPoint
from path_tracker.location.storage import PathStorage
from path_tracker.tracking.writer import NullPathWriter, PathWriter


def _make_path(n: int = 3) -> list[TrackedPoint]:
    return [
        TrackedPoint(
            latitude=41.0 + i * 0.0001,
            longitude=29.0,
            timestamp=1_700_000_000.0 + i * 5,
            accuracy=4.0,
            quality=GPSQualityTier.OPTIMAL,
            bearing=None if i == 0 else 0.0,
        )
        for i in range(n)
    ]


def test_writer_saves_path():
    sink = MagicMock()
    sink.save_path.return_value = 7
    writer = PathWriter(sink)
    path = _make_path()

    writer.submit("alice", path)
    assert writer.join(timeout=2.0) is True
    writer.close()

    sink.save_path.assert_called_once_with("alice", path)
    assert writer.saved_ids == [7]
    assert writer.dropped == []


def test_writer_retries_failed_write():
    sink = MagicMock()
    sink.save_path.side_effect = [sqlite3.OperationalError("database is locked"), 9]
    writer = PathWriter(sink, max_retries=3, retry_delay_s=0.0)

    writer.submit("alice", _make_path())
    assert writer.join(timeout=2.0) is True
    writer.close()

    assert sink.save_path.call_count == 2
    assert writer.saved_ids == [9]


def test_writer_drops_after_max_retries():
    sink = MagicMock()
    sink.save_path.side_effect = sqlite3.OperationalError("disk I/O error")
    writer = PathWriter(sink, max_retries=2, retry_delay_s=0.0)

    writer.submit("alice", _make_path())
    assert writer.join(timeout=2.0) is True
    writer.close()

    assert sink.save_path.call_count == 3
    assert writer.saved_ids == []
    assert len(writer.dropped) == 1
    assert writer.dropped[0].attempts == 3


def test_writer_persists_to_storage(tmp_path):
    storage = PathStorage(str(tmp_path / "writer.db"))
    writer = PathWriter(storage)
    writer.submit("alice", _make_path(4))
    writer.close()

    assert len(writer.saved_ids) == 1
    assert storage.get_path(writer.saved_ids[0])["point_count"] == 4
    storage.close()


def test_close_without_submit_is_harmless():
    writer = PathWriter(MagicMock())
    writer.close()
    assert writer.pending() == 0


def test_null_writer_records_submissions():
    writer = NullPathWriter()
    path = _make_path(2)
    writer.submit("bob", path)
    assert writer.submitted == [("bob", path)]
    assert writer.join() is True


def test_close_during_retry_wait_drops_failing_path():
    """A path waiting for its retry gets one last attempt, then is dropped."""
    sink = MagicMock()
    sink.save_path.side_effect = sqlite3.OperationalError("database is locked")
    writer = PathWriter(sink, max_retries=3, retry_delay_s=5.0)

    writer.submit("alice", _make_path())
    writer.close(timeout=0.1)

    assert writer.saved_ids == []
    assert len(writer.dropped) == 1
    assert writer.dropped[0].user_id == "alice"
    assert writer.pending() == 0


def test_close_during_retry_wait_still_saves_on_last_attempt():
    sink = MagicMock()
    sink.save_path.side_effect = [sqlite3.OperationalError("database is locked"), 11]
    writer = PathWriter(sink, max_retries=3, retry_delay_s=5.0)

    writer.submit("alice", _make_path())
    writer.close(timeout=0.1)

    assert writer.saved_ids == [11]
    assert writer.dropped == []
    assert writer.pending() == 0
