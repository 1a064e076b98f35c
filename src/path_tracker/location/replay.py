"""CsvReplayProvider — replays an exported track CSV as a location provider."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterator
from pathlib import Path

_logger = logging.getLogger(__name__)


class CsvReplayProvider:
    """Yields one raw CSV row per :meth:`read_fix` call.

    The file must have a header row; column names follow the exported track
    format (``geoTime``, ``latitude``, ``longitude``, ``speed``,
    ``horizontalAccuracy``, optional ``heading``) or the plain
    ``timestamp``/``accuracy`` names.  Rows are handed to
    :class:`~path_tracker.location.parser.LocationParser` unchanged.

    Parameters
    ----------
    csv_path:
        Path to the CSV file.
    """

    def __init__(self, csv_path: str | Path) -> None:
        self._path = Path(csv_path)
        self._rows: Iterator[dict] | None = None
        self._exhausted = False
        self.rows_read = 0

    @property
    def exhausted(self) -> bool:
        """True once every row has been handed out."""
        return self._exhausted

    def read_fix(self) -> dict | None:
        """Return the next row as a dict, or None once the file is exhausted."""
        if self._exhausted:
            return None
        if self._rows is None:
            self._rows = self._iter_rows()
        row = next(self._rows, None)
        if row is None:
            self._exhausted = True
            _logger.info("Replay of %s finished after %d rows", self._path, self.rows_read)
            return None
        self.rows_read += 1
        return row

    def _iter_rows(self) -> Iterator[dict]:
        with self._path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            for row in reader:
                yield dict(row)
