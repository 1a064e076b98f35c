"""FixEventStream — provider polling loop feeding fixes to the tracking session.

Location providers re-deliver their cached last fix when nothing new is
available, and a background callback can hand over a fix that is older than
one already queued.  The stream only enqueues fixes strictly newer than the
last one it accepted, so the session downstream sees a clean, ordered
sequence.  When the queue is full the *oldest* fix is discarded.
"""

from __future__ import annotations

import contextlib
import logging
import queue
import threading
import time
from dataclasses import dataclass

from path_tracker.location.models import LocationFix

_logger = logging.getLogger(__name__)


@dataclass
class FixEvent:
    """A parsed location fix with the monotonic time it was received."""

    fix: LocationFix
    received_at: float  # time.monotonic() seconds

    @property
    def age_s(self) -> float:
        """Seconds since the fix was read from the provider."""
        return time.monotonic() - self.received_at


class FixEventStream:
    """Polls a provider+parser pair at *target_hz* and enqueues :class:`FixEvent`.

    Parameters
    ----------
    provider:
        Object with ``read_fix() -> dict | None``.
    parser:
        Object with ``parse(raw: dict) -> LocationFix``.
    target_hz:
        Polling frequency in Hz.
    queue_maxsize:
        Maximum number of fixes buffered before the oldest is discarded.
    """

    def __init__(
        self,
        provider,
        parser,
        target_hz: float = 1.0,
        queue_maxsize: int = 120,
    ) -> None:
        self._provider = provider
        self._parser = parser
        self._interval = 1.0 / target_hz
        self._queue: queue.Queue[FixEvent] = queue.Queue(maxsize=queue_maxsize)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_timestamp: float | None = None
        self.dropped = 0
        self.rejected = 0
        self.stale = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background polling thread."""
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="FixEventStream")
        self._thread.start()

    def stop(self) -> None:
        """Signal the polling thread to stop and join it."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def get_event(self, timeout: float = 0.1) -> FixEvent | None:
        """Return the next queued fix, or None if none arrives within *timeout* s."""
        try:
            if timeout <= 0:
                return self._queue.get_nowait()
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def queue_size(self) -> int:
        return self._queue.qsize()

    def poll_once(self) -> bool:
        """Read, parse and enqueue at most one fix.  Returns True if a fix was queued."""
        received_at = time.monotonic()
        raw = self._provider.read_fix()
        if not raw:
            return False
        try:
            fix = self._parser.parse(raw)
        except ValueError as exc:
            self.rejected += 1
            _logger.warning("Skipping unparseable fix: %s", exc)
            return False
        if self._last_timestamp is not None and fix.timestamp <= self._last_timestamp:
            self.stale += 1
            _logger.debug("Skipping stale fix at %.3f (last %.3f)", fix.timestamp, self._last_timestamp)
            return False
        self._last_timestamp = fix.timestamp
        self._enqueue(FixEvent(fix=fix, received_at=received_at))
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _run(self) -> None:
        while not self._stop_event.is_set():
            started = time.monotonic()
            self.poll_once()
            wait = self._interval - (time.monotonic() - started)
            if wait > 0:
                self._stop_event.wait(wait)

    def _enqueue(self, event: FixEvent) -> None:
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with contextlib.suppress(queue.Empty):
                self._queue.get_nowait()
                self.dropped += 1
            with contextlib.suppress(queue.Full):
                self._queue.put_nowait(event)
