"""Prompt text sent alongside a drawing page to the vision model."""
from __future__ import annotations

from typing import Optional

DEFAULT_EXTRACTION_PROMPT = """\
You are an experienced construction estimator who specialises in piping systems.
Study this construction drawing and list every piping material you can see.

For each item provide:
- category: one of Pipe, Fitting, Valve, Equipment, Specialty
- description, for example '4" PVC SCH40 Pipe' or '4" 90° PVC Elbow'
- size or nominal diameter
- material (PVC, DI, HDPE, Steel, Copper, ...)
- quantity or length; use the drawing scale when one is shown, otherwise estimate
- unit: LF for linear pipe, EA for fittings, valves and equipment
- confidence: High, Medium or Low
- notes: optional clarifications

Respond with a single JSON object shaped exactly like this:
{
  "materials": [
    {
      "category": "Pipe",
      "description": "4\\" PVC SCH40 Pipe",
      "size": "4\\"",
      "material": "PVC",
      "quantity": 150,
      "unit": "LF",
      "confidence": "High",
      "notes": ""
    }
  ],
  "drawingNotes": "Scale, unclear items or assumptions made"
}

Pay particular attention to:
- underground piping runs and above-grade mechanical piping
- pump station piping, tank connections, filter assemblies and wellhead piping
- every fitting (elbows, tees, reducers, couplings, flanges)
- every valve (gate, ball, check, butterfly)
- equipment connections

When the scale cannot be determined, report lengths as estimates with confidence "Low".
Include items you cannot identify clearly, also with confidence "Low".
"""


def resolve_prompt(custom_prompt: Optional[str]) -> str:
    """Return ``custom_prompt`` when it has content, otherwise the default prompt."""

    if custom_prompt is None or not custom_prompt.strip():
        return DEFAULT_EXTRACTION_PROMPT
    return custom_prompt


__all__ = ["DEFAULT_EXTRACTION_PROMPT", "resolve_prompt"]
