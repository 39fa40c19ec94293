"""Vision model clients used to analyse drawing pages."""

from .vision_client import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TIMEOUT_SECONDS,
    OpenAIVisionClient,
    VisionModelClient,
)

__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_MODEL",
    "DEFAULT_TIMEOUT_SECONDS",
    "OpenAIVisionClient",
    "VisionModelClient",
]
