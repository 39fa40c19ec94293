"""Background thread that periodically removes expired sessions."""
from __future__ import annotations

import logging
import threading
from typing import Optional

from pipetakeoff.telemetry import emit_exception

from .store import SessionStore

LOGGER = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


class SessionReaper:
    """Run :meth:`SessionStore.sweep` on a fixed interval until stopped."""

    def __init__(
        self,
        store: SessionStore,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.store = store
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run,
                name="session-reaper",
                daemon=True,
            )
            self._thread.start()
        LOGGER.info("Session reaper started (interval %.0fs)", self.interval_seconds)

    def stop(self, timeout: float | None = 5.0) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._stop.set()
        thread.join(timeout)
        LOGGER.info("Session reaper stopped")

    def run_once(self) -> list[str]:
        """Perform a single sweep, logging instead of raising on failure."""

        try:
            return self.store.sweep()
        except Exception as error:
            LOGGER.exception("Session sweep failed")
            emit_exception(module=__name__, error=error)
            return []

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            removed = self.run_once()
            if removed:
                LOGGER.info("Session sweep removed %d session(s)", len(removed))


__all__ = ["DEFAULT_SWEEP_INTERVAL_SECONDS", "SessionReaper"]
