"""Exception types shared by the takeoff pipeline and the HTTP layer."""
from __future__ import annotations


class TakeoffError(RuntimeError):
    """Base class for errors raised by the takeoff pipeline."""


class SessionNotFound(TakeoffError):
    """Raised when a session id is unknown or the session has expired."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id} not found or expired")
        self.session_id = session_id


class PageOutOfRange(TakeoffError):
    """Raised when a page number falls outside ``[1, page_count]``."""

    def __init__(self, page_number: int, page_count: int) -> None:
        super().__init__(f"Page {page_number} is outside the valid range 1..{page_count}")
        self.page_number = page_number
        self.page_count = page_count


class IngestionFailure(TakeoffError):
    """Raised when a document cannot be rendered into page images."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class ModelCallFailure(TakeoffError):
    """Raised when the vision model call does not return a usable response."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ModelAuthenticationError(ModelCallFailure):
    """The provider rejected the supplied credential."""


class ModelQuotaError(ModelCallFailure):
    """The provider refused the call because of rate limits or exhausted quota."""


class ModelTransportError(ModelCallFailure):
    """The provider could not be reached or did not answer in time."""


class MalformedExtractionPayload(TakeoffError):
    """Model output that could not be decoded; absorbed by the parser, never surfaced."""


__all__ = [
    "IngestionFailure",
    "MalformedExtractionPayload",
    "ModelAuthenticationError",
    "ModelCallFailure",
    "ModelQuotaError",
    "ModelTransportError",
    "PageOutOfRange",
    "SessionNotFound",
    "TakeoffError",
]
