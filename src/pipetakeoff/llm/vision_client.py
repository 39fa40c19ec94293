"""Clients that send a drawing page and prompt to a vision capable model."""

from __future__ import annotations

import logging
from typing import Optional

import openai
from openai import OpenAI

from pipetakeoff.errors import (
    ModelAuthenticationError,
    ModelCallFailure,
    ModelQuotaError,
    ModelTransportError,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TIMEOUT_SECONDS = 300.0


class VisionModelClient:
    """Common interface exposed by vision model implementations."""

    def invoke(self, image_base64: str, prompt: str, model: str, api_key: str) -> str:
        """Send a base64 PNG page and ``prompt`` to ``model``; return the raw reply text."""

        raise NotImplementedError

    @property
    def name(self) -> str:
        """Human-readable identifier of the backend."""

        return "stub"


class OpenAIVisionClient(VisionModelClient):
    """Chat completions backend using the OpenAI SDK.

    A fresh SDK client is created per call because the credential is supplied
    with each request rather than configured on the server.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = 0,
    ) -> None:
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries

    @property
    def name(self) -> str:
        return "openai"

    def invoke(self, image_base64: str, prompt: str, model: str, api_key: str) -> str:
        if not api_key:
            raise ModelAuthenticationError("API key is required")

        LOGGER.info("Analyzing drawing with model %s", model)
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:image/png;base64,{image_base64}",
                            "detail": "high",
                        },
                    },
                ],
            }
        ]

        try:
            with OpenAI(
                api_key=api_key,
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                max_retries=self.max_retries,
            ) as client:
                response = client.chat.completions.create(
                    model=model,
                    messages=messages,
                    max_tokens=self.max_tokens,
                    response_format={"type": "json_object"},
                )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as error:
            LOGGER.error("OpenAI API rejected credentials: %s", error)
            raise ModelAuthenticationError(str(error), status_code=error.status_code) from error
        except openai.RateLimitError as error:
            LOGGER.error("OpenAI API rate limit or quota exceeded: %s", error)
            raise ModelQuotaError(str(error), status_code=error.status_code) from error
        except openai.APIConnectionError as error:
            LOGGER.error("OpenAI API unreachable: %s", error)
            raise ModelTransportError(str(error)) from error
        except openai.APIStatusError as error:
            LOGGER.error("OpenAI API error: %s - %s", error.status_code, error)
            raise ModelCallFailure(
                f"OpenAI API error: {error.status_code} - {error}", status_code=error.status_code
            ) from error
        except openai.OpenAIError as error:
            LOGGER.error("OpenAI request failed: %s", error)
            raise ModelCallFailure(str(error)) from error

        LOGGER.info("Received response from OpenAI")
        if not response.choices:
            LOGGER.warning("OpenAI response contained no choices")
            return ""
        content = response.choices[0].message.content
        if not content:
            LOGGER.warning("Empty content in OpenAI response")
            return ""
        return content


__all__ = [
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_MODEL",
    "DEFAULT_TIMEOUT_SECONDS",
    "OpenAIVisionClient",
    "VisionModelClient",
]
