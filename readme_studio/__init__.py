"""Project specification integrity checks, test planning, and README generation."""

__version__ = "1.0.0"
