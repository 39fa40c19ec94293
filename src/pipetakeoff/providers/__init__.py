"""Provider exports for offline model backends."""
from __future__ import annotations

from .mock import MockVisionClient

__all__ = ["MockVisionClient"]
