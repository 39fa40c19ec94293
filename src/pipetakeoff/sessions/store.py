"""In-memory, time-bounded store of rendered document pages."""
from __future__ import annotations

import base64
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from pipetakeoff.errors import PageOutOfRange, SessionNotFound
from pipetakeoff.telemetry import emit_session_event

LOGGER = logging.getLogger(__name__)

DEFAULT_SESSION_TTL_SECONDS = 30 * 60


@dataclass(frozen=True, slots=True)
class Session:
    """Decoded pages of one uploaded document. Never modified after creation."""

    id: str
    file_name: str
    page_images: tuple[bytes, ...]
    created_at: float

    @property
    def page_count(self) -> int:
        return len(self.page_images)


class SessionStore:
    """Thread-safe mapping of session ids to immutable :class:`Session` objects.

    Sessions expire purely by age: once ``ttl_seconds`` have elapsed since
    creation a session is unreachable, whether or not :meth:`sweep` has removed
    it yet. Reads never extend a session's lifetime.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self, pages: Sequence[bytes], file_name: str) -> str:
        """Store a new session holding ``pages`` and return its id."""

        session = Session(
            id=uuid.uuid4().hex,
            file_name=file_name,
            page_images=tuple(bytes(page) for page in pages),
            created_at=self._clock(),
        )
        with self._lock:
            self._sessions[session.id] = session
        LOGGER.info("Created session %s for %s (%d pages)", session.id, file_name, session.page_count)
        emit_session_event(
            "session.create",
            session_id=session.id,
            file_name=file_name,
            pages=session.page_count,
        )
        return session.id

    def get_session(self, session_id: str) -> Session:
        """Return the live session for ``session_id`` or raise :class:`SessionNotFound`."""

        with self._lock:
            session = self._sessions.get(session_id)
        if session is None or self._is_expired(session, self._clock()):
            LOGGER.warning("Session %s not found", session_id)
            raise SessionNotFound(session_id)
        return session

    def get_page(self, session_id: str, page_number: int) -> bytes:
        """Return the encoded image for the 1-based ``page_number``."""

        session = self.get_session(session_id)
        if page_number < 1 or page_number > session.page_count:
            LOGGER.warning("Invalid page number %s for session %s", page_number, session_id)
            raise PageOutOfRange(page_number, session.page_count)
        return session.page_images[page_number - 1]

    def get_page_base64(self, session_id: str, page_number: int) -> str:
        """Return the page image as base64 text, validated like :meth:`get_page`."""

        return base64.b64encode(self.get_page(session_id, page_number)).decode("ascii")

    def sweep(self) -> List[str]:
        """Remove every expired session and return the removed ids.

        Keys are snapshotted first; each removal then takes the lock on its own
        so concurrent creates and reads are never blocked for the whole sweep.
        """

        now = self._clock()
        with self._lock:
            snapshot = list(self._sessions.items())

        expired = [session_id for session_id, session in snapshot if self._is_expired(session, now)]
        removed: List[str] = []
        for session_id in expired:
            with self._lock:
                session = self._sessions.pop(session_id, None)
            if session is None:
                continue
            removed.append(session_id)
            LOGGER.info("Removed expired session %s", session_id)
            emit_session_event(
                "session.expire",
                session_id=session_id,
                age_seconds=round(now - session.created_at, 3),
            )
        return removed

    def _is_expired(self, session: Session, now: float) -> bool:
        return now - session.created_at >= self.ttl_seconds


__all__ = ["DEFAULT_SESSION_TTL_SECONDS", "Session", "SessionStore"]
