"""Mock vision model used for offline development and tests."""
from __future__ import annotations

import json

from pipetakeoff.llm import VisionModelClient

_CANNED_RESPONSE = {
    "materials": [
        {
            "category": "Pipe",
            "description": '4" PVC SCH40 Pipe',
            "size": '4"',
            "material": "PVC",
            "quantity": 150,
            "unit": "LF",
            "confidence": "High",
            "notes": "",
        },
        {
            "category": "Fitting",
            "description": '4" 90° PVC Elbow',
            "size": '4"',
            "material": "PVC",
            "quantity": 6,
            "unit": "EA",
            "confidence": "Medium",
            "notes": None,
        },
        {
            "category": "Valve",
            "description": '4" Gate Valve',
            "size": '4"',
            "material": "DI",
            "quantity": 2,
            "unit": "EA",
            "confidence": "Low",
            "notes": "Valve type inferred from symbol",
        },
    ],
    "drawingNotes": "MOCK_ANALYSIS: scale not verified",
}


class MockVisionClient(VisionModelClient):
    """Return a deterministic takeoff for any page."""

    def __init__(self, response: str | None = None) -> None:
        self.response = response if response is not None else json.dumps(_CANNED_RESPONSE)
        self.calls: list[dict[str, str]] = []

    @property
    def name(self) -> str:
        return "mock"

    def invoke(self, image_base64: str, prompt: str, model: str, api_key: str) -> str:
        self.calls.append({"model": model, "prompt": prompt, "image_base64": image_base64})
        return self.response
