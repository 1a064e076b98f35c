"""Path writers — hand flushed paths to a persistence sink without blocking the caller."""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from path_tracker.location.models import TrackedPoint

_logger = logging.getLogger(__name__)

# How often the idle writer thread checks for shutdown.
_POLL_S = 0.1


@dataclass
class PathJob:
    """One flushed path waiting to be written."""

    user_id: str
    points: list[TrackedPoint]
    attempts: int = field(default=0)


class NullPathWriter:
    """Records submissions synchronously; used in tests and dry runs."""

    def __init__(self) -> None:
        self.submitted: list[tuple[str, list[TrackedPoint]]] = []

    def submit(self, user_id: str, points: Sequence[TrackedPoint]) -> None:
        self.submitted.append((user_id, list(points)))

    def join(self, timeout: float | None = None) -> bool:
        return True

    def close(self) -> None:
        pass


class PathWriter:
    """Background writer delivering paths to *sink* on a daemon thread.

    Each path is written at most once per successful attempt.  A failed write
    is logged and requeued up to *max_retries* times before the path is
    dropped with an error log.  Jobs still queued or waiting for a retry when
    the writer stops get one final attempt; if that fails too they land in
    :attr:`dropped`.

    Parameters
    ----------
    sink:
        Object with ``save_path(user_id, points) -> int`` —
        e.g. :class:`~path_tracker.location.storage.PathStorage`.
    max_retries:
        Additional attempts after the first failure.
    retry_delay_s:
        Pause before a failed job is retried.
    """

    def __init__(self, sink, max_retries: int = 3, retry_delay_s: float = 0.5) -> None:
        self._sink = sink
        self._max_retries = max_retries
        self._retry_delay = retry_delay_s
        self._queue: queue.Queue[PathJob] = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.saved_ids: list[int] = []
        self.dropped: list[PathJob] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the writer thread (idempotent)."""
        if self._thread is not None:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="PathWriter")
        self._thread.start()

    def submit(self, user_id: str, points: Sequence[TrackedPoint]) -> None:
        """Queue a path for writing and return immediately."""
        if self._thread is None:
            self.start()
        self._queue.put(PathJob(user_id=user_id, points=list(points)))

    def join(self, timeout: float | None = None) -> bool:
        """Wait until every queued path is written or dropped.

        Returns False if *timeout* expired first.
        """
        done = threading.Event()

        def _wait() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        return done.wait(timeout)

    def close(self, timeout: float = 5.0) -> None:
        """Drain pending writes, then stop the writer thread."""
        if self._thread is None:
            return
        self.join(timeout)
        self._stop_event.set()
        self._thread.join(timeout=2.0)
        self._thread = None

    def pending(self) -> int:
        """Number of jobs not yet picked up by the writer thread."""
        return self._queue.qsize()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                job = self._queue.get(timeout=_POLL_S)
            except queue.Empty:
                continue
            try:
                self._write(job)
            finally:
                self._queue.task_done()
        self._drain()

    def _drain(self) -> None:
        """Give every job still queued at shutdown one last attempt without waiting."""
        while True:
            try:
                job = self._queue.get_nowait()
            except queue.Empty:
                return
            try:
                self._write(job, final=True)
            finally:
                self._queue.task_done()

    def _write(self, job: PathJob, final: bool = False) -> None:
        job.attempts += 1
        try:
            path_id = self._sink.save_path(job.user_id, job.points)
        except Exception as exc:
            if final or job.attempts > self._max_retries:
                _logger.error(
                    "Dropping %d-point path for user %s after %d attempts: %s",
                    len(job.points),
                    job.user_id,
                    job.attempts,
                    exc,
                )
                self.dropped.append(job)
                return
            _logger.warning(
                "Path write failed for user %s (attempt %d), retrying: %s",
                job.user_id,
                job.attempts,
                exc,
            )
            self._stop_event.wait(self._retry_delay)
            self._queue.put(job)
            return
        self.saved_ids.append(path_id)
        _logger.info("Saved path %s for user %s (%d points)", path_id, job.user_id, len(job.points))
