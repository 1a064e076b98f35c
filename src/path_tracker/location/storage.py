"""PathStorage — persists discovered paths to SQLite.

Schema design notes:
  - ``users`` lookup table: the owning user id string is stored once and
    referenced by an integer key from ``paths``.
  - ``paths`` carries a summary row (time span, point count, length) so that
    listing a user's paths never touches ``path_points``.
  - ``path_points`` keeps the per-point sequence number; points are always
    read back in the order they were flushed.
  - The connection is shared with the background writer thread, so every
    access goes through a lock.
"""

from __future__ import annotations

import math
import sqlite3
import threading
from collections.abc import Sequence

from path_tracker.geo.distance import distance_m
from path_tracker.location.models import GPSQualityTier, TrackedPoint

_DDL = """
PRAGMA journal_mode = WAL;
PRAGMA synchronous  = NORMAL;
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
    idx     INTEGER PRIMARY KEY,
    user_id TEXT    NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS paths (
    id          INTEGER PRIMARY KEY,
    user_idx    INTEGER NOT NULL REFERENCES users (idx),
    start_time  REAL    NOT NULL,
    end_time    REAL    NOT NULL,
    point_count INTEGER NOT NULL,
    distance_m  REAL    NOT NULL,
    created_at  TEXT    NOT NULL
                DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_paths_user
    ON paths (user_idx, start_time);

CREATE TABLE IF NOT EXISTS path_points (
    path_id   INTEGER NOT NULL REFERENCES paths (id) ON DELETE CASCADE,
    seq       INTEGER NOT NULL,
    latitude  REAL    NOT NULL,
    longitude REAL    NOT NULL,
    timestamp REAL    NOT NULL,
    accuracy  REAL,
    quality   TEXT    NOT NULL,
    bearing   REAL,
    speed     REAL,
    PRIMARY KEY (path_id, seq)
);
"""

_INSERT_USER = "INSERT OR IGNORE INTO users (user_id) VALUES (?)"
_SELECT_USER = "SELECT idx FROM users WHERE user_id = ?"

_INSERT_PATH = """
INSERT INTO paths (user_idx, start_time, end_time, point_count, distance_m)
VALUES (?, ?, ?, ?, ?)
"""

_INSERT_POINT = """
INSERT INTO path_points (
    path_id, seq, latitude, longitude, timestamp, accuracy, quality, bearing, speed
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_PATH = """
SELECT p.id, u.user_id, p.start_time, p.end_time, p.point_count, p.distance_m, p.created_at
FROM   paths p
JOIN   users u ON u.idx = p.user_idx
WHERE  p.id = ?
"""

_SELECT_USER_PATHS = """
SELECT p.id, u.user_id, p.start_time, p.end_time, p.point_count, p.distance_m, p.created_at
FROM   paths p
JOIN   users u ON u.idx = p.user_idx
WHERE  u.user_id = ?
ORDER  BY p.start_time, p.id
"""

_SELECT_POINTS = """
SELECT latitude, longitude, timestamp, accuracy, quality, bearing, speed
FROM   path_points
WHERE  path_id = ?
ORDER  BY seq
"""


def path_length_m(points: Sequence[TrackedPoint]) -> float:
    """Sum of haversine distances between consecutive points."""
    return sum(
        distance_m(a.latitude, a.longitude, b.latitude, b.longitude)
        for a, b in zip(points, points[1:])
    )


class PathStorage:
    """Stores and retrieves discovered paths from a SQLite database.

    Parameters
    ----------
    db_path:
        Path to the SQLite file.  Pass ``":memory:"`` for in-process testing.
    """

    def __init__(self, db_path: str = "paths.db") -> None:
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        with self._lock:
            for stmt in _DDL.strip().split(";"):
                stmt = stmt.strip()
                if stmt:
                    self._conn.execute(stmt)
            self._conn.commit()
        self._user_cache: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def save_path(self, user_id: str, points: Sequence[TrackedPoint]) -> int:
        """Persist one path for *user_id* and return its new id.

        Raises
        ------
        ValueError
            If *points* holds fewer than two points.
        """
        if len(points) < 2:
            raise ValueError(f"a path needs at least 2 points, got {len(points)}")
        length = path_length_m(points)
        with self._lock:
            try:
                user_idx = self._user_idx(user_id)
                cursor = self._conn.execute(
                    _INSERT_PATH,
                    (user_idx, points[0].timestamp, points[-1].timestamp, len(points), length),
                )
                path_id = cursor.lastrowid
                self._conn.executemany(
                    _INSERT_POINT,
                    [
                        (
                            path_id,
                            seq,
                            p.latitude,
                            p.longitude,
                            p.timestamp,
                            p.accuracy if math.isfinite(p.accuracy) else None,
                            p.quality.value,
                            p.bearing,
                            p.speed,
                        )
                        for seq, p in enumerate(points)
                    ],
                )
                self._conn.commit()
            except sqlite3.Error:
                self._conn.rollback()
                self._user_cache.pop(user_id, None)
                raise
        return path_id  # type: ignore[return-value]

    def get_path(self, path_id: int) -> dict | None:
        """Return the summary row of a path as a dict, or None if not found."""
        with self._lock:
            row = self._conn.execute(_SELECT_PATH, (path_id,)).fetchone()
        return dict(row) if row else None

    def get_path_points(self, path_id: int) -> list[TrackedPoint]:
        """Return the points of *path_id* in flush order (empty if unknown)."""
        with self._lock:
            rows = self._conn.execute(_SELECT_POINTS, (path_id,)).fetchall()
        return [
            TrackedPoint(
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                timestamp=float(r["timestamp"]),
                accuracy=float(r["accuracy"]) if r["accuracy"] is not None else math.inf,
                quality=GPSQualityTier(r["quality"]),
                bearing=r["bearing"],
                speed=r["speed"],
            )
            for r in rows
        ]

    def list_paths(self, user_id: str) -> list[dict]:
        """Return all path summaries for *user_id*, oldest first."""
        with self._lock:
            rows = self._conn.execute(_SELECT_USER_PATHS, (user_id,)).fetchall()
        return [dict(r) for r in rows]

    def delete_path(self, path_id: int) -> bool:
        """Delete a path and its points.  Returns False if it did not exist."""
        with self._lock:
            cursor = self._conn.execute("DELETE FROM paths WHERE id = ?", (path_id,))
            self._conn.commit()
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _user_idx(self, user_id: str) -> int:
        """Return the integer PK for *user_id*, creating a row if needed.  Caller holds the lock."""
        if user_id not in self._user_cache:
            self._conn.execute(_INSERT_USER, (user_id,))
            row = self._conn.execute(_SELECT_USER, (user_id,)).fetchone()
            self._user_cache[user_id] = row[0]
        return self._user_cache[user_id]
