"""Centralised observability helpers for structured lifecycle logging."""

from __future__ import annotations

import logging
import platform
import sys
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterator, Optional

LOGGER = logging.getLogger("pipetakeoff.telemetry")


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    session_id: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if session_id:
        event["session_id"] = session_id
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_app_startup_event(*, settings: Any) -> None:
    details = {
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "llm_provider": getattr(settings, "llm_provider", None),
        "model": getattr(settings, "openai_model", None),
        "session_ttl_seconds": getattr(settings, "session_ttl_seconds", None),
        "sweep_interval_seconds": getattr(settings, "sweep_interval_seconds", None),
    }
    log_event(LOGGER, "app.startup", details=details)


def emit_session_event(step: str, *, session_id: str, **details: Any) -> None:
    log_event(LOGGER, step, session_id=session_id, details=details)


def emit_ingest_event(
    step: str,
    *,
    file_name: str,
    session_id: str | None = None,
    size_bytes: int | None = None,
    duration_ms: float | None = None,
    pages: int | None = None,
    error: BaseException | None = None,
) -> None:
    details = {
        "file": file_name,
        "size_bytes": size_bytes,
        "pages": pages,
    }
    level = "error" if error else "info"
    log_event(
        LOGGER,
        step,
        level=level,
        session_id=session_id,
        duration_ms=duration_ms,
        details=details,
        exc=error,
    )


def emit_inference_request(
    *,
    req_id: str,
    session_id: str,
    page_number: int,
    model: str,
    prompt_preview: str,
    custom_prompt: bool,
    image_bytes: int,
) -> None:
    details = {
        "page": page_number,
        "model": model,
        "prompt_preview": prompt_preview[:120],
        "custom_prompt": custom_prompt,
        "image_bytes": image_bytes,
    }
    log_event(LOGGER, "inference.request", req_id=req_id, session_id=session_id, details=details)


def emit_inference_result(
    *,
    req_id: str,
    session_id: str,
    duration_ms: float,
    model: str,
    response_chars: int,
    materials: int,
    has_notes: bool,
) -> None:
    details = {
        "model": model,
        "response_chars": response_chars,
        "materials": materials,
        "has_notes": has_notes,
    }
    log_event(
        LOGGER,
        "inference.result",
        req_id=req_id,
        session_id=session_id,
        duration_ms=duration_ms,
        details=details,
    )


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    session_id: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        session_id=session_id,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_app_startup_event",
    "emit_exception",
    "emit_inference_request",
    "emit_inference_result",
    "emit_ingest_event",
    "emit_session_event",
    "log_event",
    "traced_duration",
]
