import logging
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from pipetakeoff.api import analysis_router, export_router, upload_router
from pipetakeoff.config import load_settings
from pipetakeoff.logging_config import configure_logging
from pipetakeoff.services.takeoff import get_takeoff_service
from pipetakeoff.telemetry import emit_app_startup_event

configure_logging()

LOGGER = logging.getLogger(__name__)

SETTINGS = load_settings()

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}

app = FastAPI(title="Pipe Takeoff API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.allowed_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(upload_router)
app.include_router(analysis_router)
app.include_router(export_router)


@app.middleware("http")
async def _add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


T = TypeVar("T")


def _resolve_dependency(factory: Callable[[], T]) -> T:
    """Resolve a dependency while respecting FastAPI overrides."""

    override: Any | None = app.dependency_overrides.get(factory)
    resolved: Any = override if override is not None else factory
    return resolved() if callable(resolved) else resolved


@app.on_event("startup")
async def _start_session_reaper() -> None:
    """Log the effective configuration and start sweeping expired sessions."""

    emit_app_startup_event(settings=SETTINGS)
    _resolve_dependency(get_takeoff_service).start()


@app.on_event("shutdown")
async def _stop_session_reaper() -> None:
    _resolve_dependency(get_takeoff_service).stop()


@app.get("/health")
def health() -> dict[str, Any]:
    """Liveness probe reporting the number of open sessions."""

    service = _resolve_dependency(get_takeoff_service)
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "sessions": len(service.store),
    }


@app.get("/", include_in_schema=False)
def read_root() -> RedirectResponse:
    return RedirectResponse(url="/docs")
