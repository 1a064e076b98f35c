"""TrackingRunner — connects a FixEventStream to a TrackingSession."""

from __future__ import annotations

from path_tracker.tracking.session import FixResult


class TrackingRunner:
    """Feeds queued fixes to a session one at a time.

    Parameters
    ----------
    stream:
        A :class:`~path_tracker.tracking.event_stream.FixEventStream`.
    session:
        A :class:`~path_tracker.tracking.session.TrackingSession`.
    """

    def __init__(self, stream, session) -> None:
        self._stream = stream
        self._session = session

    def start(self) -> None:
        """Start the underlying fix stream."""
        self._stream.start()

    def stop(self) -> None:
        """Stop the stream, then end the session so the in-flight path is flushed."""
        self._stream.stop()
        self._session.stop()

    def tick(self, timeout: float = 0.0) -> FixResult | None:
        """Process one fix from the queue.

        Returns the session's :class:`FixResult`, or None if no fix was available.
        """
        event = self._stream.get_event(timeout=timeout)
        if event is None:
            return None
        return self._session.process(event.fix)
