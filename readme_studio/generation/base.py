"""Generator abstraction for text completion collaborators."""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from readme_studio.config import DEFAULT_MODEL, require_positive_int, validate_temperature

SYSTEM_PROMPT = (
    "You are an expert software architect helping generate technical documentation "
    "and project specifications."
)


@dataclass(frozen=True)
class GenerationOptions:
    """Model settings for one completion call."""

    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 4096

    def __post_init__(self) -> None:
        if not self.model.strip():
            raise ValueError("model must be non-empty.")
        validate_temperature(self.temperature)
        require_positive_int(self.max_tokens, "max_tokens")


class TextGenerator(Protocol):
    """Interface implemented by all text generators."""

    async def generate(self, prompt: str, options: GenerationOptions | None = None) -> str:
        """Return the completion for a prompt."""
        ...

    def stream(
        self, prompt: str, options: GenerationOptions | None = None
    ) -> AsyncIterator[str]:
        """Yield completion text chunks for a prompt."""
        ...
