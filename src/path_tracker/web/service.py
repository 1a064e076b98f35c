"""TrackingService — session registry and path queries behind the Web API."""

from __future__ import annotations

import logging
import threading
import uuid

from path_tracker.config import TrackingConfig
from path_tracker.location.parser import LocationParser
from path_tracker.location.storage import PathStorage
from path_tracker.tracking.session import FixResult, TrackingSession
from path_tracker.tracking.writer import PathWriter

_logger = logging.getLogger(__name__)


class SessionConflictError(RuntimeError):
    """Raised when a user already has an active tracking session."""


class TrackingService:
    """Holds the active tracking sessions and the shared path writer.

    At most one session per user is active at a time, so foreground and
    background fix sources for the same user can never interleave.

    Parameters
    ----------
    storage:
        The :class:`PathStorage` paths are written to and read from.
    config:
        Threshold set shared by every session.
    writer:
        Optional writer for testing injection.  Defaults to a
        :class:`PathWriter` over *storage*.
    """

    def __init__(
        self,
        storage: PathStorage,
        config: TrackingConfig | None = None,
        writer=None,
    ) -> None:
        self.storage = storage
        self.config = config or TrackingConfig()
        self._writer = writer if writer is not None else PathWriter(storage)
        self._parser = LocationParser()
        self._sessions: dict[str, TrackingSession] = {}
        self._session_locks: dict[str, threading.Lock] = {}
        self._by_user: dict[str, str] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def start_session(self, user_id: str) -> str:
        """Start tracking for *user_id* and return the new session id.

        Raises
        ------
        SessionConflictError
            If *user_id* already has an active session.
        """
        with self._lock:
            if user_id in self._by_user:
                raise SessionConflictError(
                    f"user {user_id!r} already has active session {self._by_user[user_id]}"
                )
            session_id = uuid.uuid4().hex
            self._sessions[session_id] = TrackingSession(user_id, self._writer, self.config)
            self._session_locks[session_id] = threading.Lock()
            self._by_user[user_id] = session_id
        return session_id

    def get_session(self, session_id: str) -> TrackingSession:
        """Raises ``KeyError`` for unknown or stopped sessions."""
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"no active session {session_id!r}") from None

    def process_fixes(self, session_id: str, raw_fixes: list[dict]) -> list[FixResult]:
        """Parse and process *raw_fixes* in order.

        Raises
        ------
        KeyError
            Unknown session, or the session was stopped before the batch ran.
        ValueError
            A raw fix could not be parsed; no fix of the batch is processed.
        """
        with self._lock:
            session = self.get_session(session_id)
            session_lock = self._session_locks[session_id]
        fixes = [self._parser.parse(raw) for raw in raw_fixes]
        # One batch at a time per session; a concurrent stop waits for it.
        with session_lock:
            if not session.active:
                raise KeyError(f"session {session_id!r} was stopped")
            return [session.process(fix) for fix in fixes]

    def stop_session(self, session_id: str) -> TrackingSession:
        """Stop and forget a session; its in-flight path is flushed to the writer."""
        with self._lock:
            session = self.get_session(session_id)
            session_lock = self._session_locks.pop(session_id)
            del self._sessions[session_id]
            self._by_user.pop(session.user_id, None)
        with session_lock:
            session.stop()
        return session

    def active_sessions(self) -> int:
        return len(self._sessions)

    def shutdown(self) -> None:
        """Stop every session and drain pending writes."""
        for session_id in list(self._sessions):
            self.stop_session(session_id)
        self._writer.close()
        _logger.info("Tracking service shut down")

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def list_paths(self, user_id: str) -> list[dict]:
        return self.storage.list_paths(user_id)

    def get_path(self, path_id: int) -> tuple[dict, list]:
        """Return ``(summary, points)``.  Raises ``KeyError`` if unknown."""
        summary = self.storage.get_path(path_id)
        if summary is None:
            raise KeyError(f"no path {path_id}")
        return summary, self.storage.get_path_points(path_id)

    def delete_path(self, path_id: int) -> None:
        if not self.storage.delete_path(path_id):
            raise KeyError(f"no path {path_id}")
