"""Text generator implementations."""

from readme_studio.generation.base import GenerationOptions, TextGenerator
from readme_studio.generation.mock_provider import MockGenerator
from readme_studio.generation.openai_provider import OpenAIGenerator

__all__ = ["GenerationOptions", "MockGenerator", "OpenAIGenerator", "TextGenerator"]
