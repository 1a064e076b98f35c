"""Replay an exported track CSV through the path-tracking pipeline.

Usage:
    uv run python scripts/replay_track.py --csv Path.csv
    uv run python scripts/replay_track.py --csv Path.csv --db paths.db --user alice
    uv run python scripts/replay_track.py --csv Path.csv --hz 200 --log-level DEBUG

Discovered paths are written to SQLite; a summary is printed at the end.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from dotenv import load_dotenv

load_dotenv()

from path_tracker.config import TrackingConfig  # noqa: E402
from path_tracker.location.parser import LocationParser  # noqa: E402
from path_tracker.location.replay import CsvReplayProvider  # noqa: E402
from path_tracker.location.storage import PathStorage  # noqa: E402
from path_tracker.tracking.event_stream import FixEventStream  # noqa: E402
from path_tracker.tracking.runner import TrackingRunner  # noqa: E402
from path_tracker.tracking.session import TrackingSession  # noqa: E402
from path_tracker.tracking.writer import PathWriter  # noqa: E402


def main() -> int:
    ap = argparse.ArgumentParser(description="Replay a track CSV into discovered paths")
    ap.add_argument("--csv", required=True, help="Track CSV (geoTime/latitude/longitude/...)")
    ap.add_argument("--db", default="paths.db", help="SQLite database path")
    ap.add_argument("--user", default="replay", help="User id owning the paths")
    ap.add_argument("--hz", type=float, default=500.0, help="Replay rate in fixes per second")
    ap.add_argument("--log-level", default="INFO", help="Logging level")
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = TrackingConfig.from_env()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    provider = CsvReplayProvider(args.csv)
    storage = PathStorage(args.db)
    writer = PathWriter(storage)
    session = TrackingSession(args.user, writer, config)
    # Queue sized so a fast replay never drops fixes.
    stream = FixEventStream(provider, LocationParser(), target_hz=args.hz, queue_maxsize=100_000)
    runner = TrackingRunner(stream, session)

    processed = 0
    runner.start()
    try:
        while True:
            result = runner.tick(timeout=0.05)
            if result is not None:
                processed += 1
                continue
            if provider.exhausted and stream.queue_size() == 0:
                break
            time.sleep(0.001)
    except KeyboardInterrupt:
        print("\nInterrupted, flushing the current path.")
    finally:
        runner.stop()
        writer.close()

    paths = storage.list_paths(args.user)
    storage.close()

    print()
    print(f"Rows read        : {provider.rows_read}")
    print(f"Rows unparseable : {stream.rejected}")
    print(f"Rows stale       : {stream.stale}")
    print(f"Fixes processed  : {processed}")
    print(f"Points collected : {session.points_collected}")
    print(f"Paths written    : {len(writer.saved_ids)} (dropped {len(writer.dropped)})")
    print(f"Paths for {args.user!r} in {args.db}: {len(paths)}")
    for p in paths:
        print(f"  #{p['id']:>4}  {p['point_count']:>5} pts  {p['distance_m']:>9.1f} m")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
