"""Parsing of vision model responses into material records."""

from .parser import decode_material, parse_extraction_response
from .prompts import DEFAULT_EXTRACTION_PROMPT, resolve_prompt

__all__ = [
    "DEFAULT_EXTRACTION_PROMPT",
    "decode_material",
    "parse_extraction_response",
    "resolve_prompt",
]
