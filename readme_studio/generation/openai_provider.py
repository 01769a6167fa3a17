"""OpenAI-backed text generator for README content."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from readme_studio.errors import GenerationError, GenerationNotConfiguredError
from readme_studio.generation.base import SYSTEM_PROMPT, GenerationOptions

logger = logging.getLogger(__name__)


class OpenAIGenerator:
    """Text generator using the OpenAI chat completions API.

    The SDK client is built without retries; retry policy belongs to the caller.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        default_options: GenerationOptions | None = None,
        request_timeout_seconds: float = 120.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize generator with API key and default model settings."""
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.default_options = default_options or GenerationOptions()
        self.request_timeout_seconds = request_timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        """Return whether a credential or injected client is available."""
        return self._client is not None or bool(self._api_key)

    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        """Return the completion text for a prompt."""
        resolved = options or self.default_options
        client = self._require_client()
        try:
            response = await client.chat.completions.create(
                model=resolved.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=resolved.temperature,
                max_tokens=resolved.max_tokens,
            )
        except (APIConnectionError, APITimeoutError, RateLimitError, APIError) as exc:
            raise _to_generation_error(exc) from exc
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise GenerationError("No content received from model.")
        return str(content)

    async def stream(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> AsyncIterator[str]:
        """Yield completion text chunks as they arrive."""
        resolved = options or self.default_options
        client = self._require_client()
        try:
            stream = await client.chat.completions.create(
                model=resolved.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=resolved.temperature,
                max_tokens=resolved.max_tokens,
                stream=True,
            )
            async with stream:
                async for chunk in stream:
                    if not chunk.choices:
                        continue
                    delta = chunk.choices[0].delta.content
                    if delta:
                        yield delta
        except (APIConnectionError, APITimeoutError, RateLimitError, APIError) as exc:
            raise _to_generation_error(exc) from exc

    def _require_client(self) -> AsyncOpenAI:
        """Return the injected client or build one from the API key."""
        if self._client is not None:
            return self._client
        if not self._api_key:
            raise GenerationNotConfiguredError(
                "OPENAI_API_KEY is not configured. Set it in the environment: OPENAI_API_KEY=sk-..."
            )
        self._client = AsyncOpenAI(
            api_key=self._api_key,
            max_retries=0,
            timeout=self.request_timeout_seconds,
        )
        return self._client


def _to_generation_error(exc: Exception) -> GenerationError:
    """Translate SDK failures into the service error taxonomy."""
    if isinstance(exc, RateLimitError):
        logger.warning("OpenAI rate limit hit: %s", exc)
        return GenerationError(f"OpenAI rate limit exceeded: {exc}")
    if isinstance(exc, APITimeoutError):
        logger.warning("OpenAI request timed out.")
        return GenerationError("OpenAI request timed out.")
    if isinstance(exc, APIConnectionError):
        logger.warning("OpenAI connection error: %s", exc)
        return GenerationError(f"OpenAI connection error: {exc}")
    status = getattr(exc, "status_code", None)
    logger.warning("OpenAI API error (status=%s): %s", status, exc)
    message = getattr(exc, "message", None) or str(exc)
    return GenerationError(f"OpenAI API Error: {message}")
