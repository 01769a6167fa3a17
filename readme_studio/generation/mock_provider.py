"""Test generator that returns queued text responses."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable

from readme_studio.errors import GenerationError
from readme_studio.generation.base import GenerationOptions


class MockGenerator:
    """A deterministic generator for unit/integration tests."""

    def __init__(self, responses: Iterable[str], *, chunk_size: int = 64) -> None:
        """Initialize mock generator with queued text responses."""
        self._responses = list(responses)
        self._chunk_size = chunk_size
        self.prompts: list[tuple[str, GenerationOptions]] = []

    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        """Return next queued response and record the prompt."""
        self.prompts.append((prompt, options or GenerationOptions()))
        if not self._responses:
            raise GenerationError("MockGenerator has no remaining responses.")
        content = self._responses.pop(0)
        if not content:
            raise GenerationError("No content received from model.")
        return content

    async def stream(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> AsyncIterator[str]:
        """Yield the next queued response in fixed-size chunks."""
        content = await self.generate(prompt, options)
        for start in range(0, len(content), self._chunk_size):
            yield content[start : start + self._chunk_size]
