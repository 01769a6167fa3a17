"""Error taxonomy shared by the service boundary and its collaborators."""

from __future__ import annotations


class ReadmeStudioError(RuntimeError):
    """Base class for all service errors."""


class ValidationError(ReadmeStudioError):
    """Raised when a request payload does not meet the minimum specification shape."""

    def __init__(self, problems: list[str]) -> None:
        message = "; ".join(problems) if problems else "invalid specification"
        super().__init__(message)
        self.problems = tuple(problems)


class GenerationError(ReadmeStudioError):
    """Raised when the text-generation collaborator fails or returns nothing."""


class GenerationNotConfiguredError(GenerationError):
    """Raised when no generation credential is available."""


class AuthError(ReadmeStudioError):
    """Raised when a credential is missing, malformed, or expired."""

    def __init__(self, message: str, *, code: str = "INVALID_TOKEN") -> None:
        super().__init__(message)
        self.code = code


class PersistenceError(ReadmeStudioError):
    """Raised when the document store cannot complete an operation."""
