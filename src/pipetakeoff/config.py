"""Environment driven settings for the takeoff service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

LOGGER = logging.getLogger(__name__)

DEFAULT_ALLOWED_ORIGINS: tuple[str, ...] = ("http://localhost:5173",)


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    items = tuple(item.strip() for item in value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime configuration resolved once at startup."""

    session_ttl_seconds: float = 30 * 60
    sweep_interval_seconds: float = 5 * 60
    render_max_dimension: int = 2048
    max_upload_bytes: int = 50 * 1024 * 1024
    llm_provider: str = "openai"
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 4096
    openai_timeout_seconds: float = 300.0
    allowed_origins: tuple[str, ...] = field(default=DEFAULT_ALLOWED_ORIGINS)


def load_settings() -> Settings:
    """Build :class:`Settings` from the current environment."""

    return Settings(
        session_ttl_seconds=_float_from_env("SESSION_TTL_MINUTES", 30) * 60,
        sweep_interval_seconds=_float_from_env("SESSION_SWEEP_INTERVAL_MINUTES", 5) * 60,
        render_max_dimension=_int_from_env("RENDER_MAX_DIMENSION", 2048),
        max_upload_bytes=_int_from_env("MAX_UPLOAD_MB", 50) * 1024 * 1024,
        llm_provider=os.getenv("LLM_PROVIDER", "openai").strip().lower() or "openai",
        openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        openai_max_tokens=_int_from_env("OPENAI_MAX_TOKENS", 4096),
        openai_timeout_seconds=_float_from_env("OPENAI_TIMEOUT_SECONDS", 300.0),
        allowed_origins=_env_list("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
    )


__all__ = ["Settings", "load_settings"]
