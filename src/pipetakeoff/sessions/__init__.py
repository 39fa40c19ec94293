"""Session storage for rendered document pages."""

from .reaper import DEFAULT_SWEEP_INTERVAL_SECONDS, SessionReaper
from .store import DEFAULT_SESSION_TTL_SECONDS, Session, SessionStore

__all__ = [
    "DEFAULT_SESSION_TTL_SECONDS",
    "DEFAULT_SWEEP_INTERVAL_SECONDS",
    "Session",
    "SessionReaper",
    "SessionStore",
]
