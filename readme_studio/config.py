"""Environment-driven service configuration and its validation helpers."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

README_STUDIO_HOME_ENV = "README_STUDIO_HOME"
DEFAULT_MODEL = "gpt-4o-mini"
SUPPORTED_PROVIDERS = {"openai", "mock"}


def require_positive_int(value: int, field_name: str) -> int:
    """Validate a positive integer input and return it."""
    if value <= 0:
        raise ValueError(f"{field_name} must be greater than zero.")
    return value


def require_positive_float(value: float, field_name: str) -> float:
    """Validate a positive float input and return it."""
    if value <= 0:
        raise ValueError(f"{field_name} must be greater than zero.")
    return value


def validate_choice(value: str, field_name: str, allowed: set[str]) -> str:
    """Validate that a string value is within a set of allowed options."""
    if value not in allowed:
        options = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {options}.")
    return value


def validate_temperature(value: float) -> float:
    """Validate sampling temperature within the range accepted by the API."""
    if not 0.0 <= value <= 2.0:
        raise ValueError("temperature must be between 0 and 2 inclusive.")
    return value


def resolve_home(environ: Mapping[str, str] | None = None) -> Path:
    """Resolve the data directory from env or default location."""
    env = os.environ if environ is None else environ
    env_value = env.get(README_STUDIO_HOME_ENV)
    if env_value:
        return Path(env_value).expanduser().resolve()
    return (Path.home() / ".readme_studio").resolve()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer.") from exc


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number.") from exc


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime configuration for the HTTP service and CLI."""

    openai_api_key: str | None = None
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 8000
    generation_timeout_seconds: float = 120.0
    host: str = "0.0.0.0"  # nosec B104
    port: int = 3001
    frontend_url: str = "http://localhost:3002"
    home_dir: Path = field(default_factory=resolve_home)
    result_ttl_hours: int = 24
    result_sweep_seconds: float = 3600.0

    def __post_init__(self) -> None:
        validate_temperature(self.temperature)
        require_positive_int(self.max_tokens, "max_tokens")
        require_positive_float(self.generation_timeout_seconds, "generation_timeout_seconds")
        require_positive_int(self.port, "port")
        require_positive_int(self.result_ttl_hours, "result_ttl_hours")
        require_positive_float(self.result_sweep_seconds, "result_sweep_seconds")

    @property
    def database_path(self) -> Path:
        """Return the SQLite file backing persisted documents."""
        return self.home_dir / "documents.sqlite"

    @property
    def cors_origins(self) -> list[str]:
        """Return allowed browser origins."""
        origins = [self.frontend_url, "http://localhost:3000", "http://localhost:3002"]
        return list(dict.fromkeys(origins))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ServiceConfig:
        """Build configuration from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            model=env.get("README_STUDIO_MODEL") or DEFAULT_MODEL,
            temperature=_env_float(env, "README_STUDIO_TEMPERATURE", 0.7),
            max_tokens=_env_int(env, "README_STUDIO_MAX_TOKENS", 8000),
            generation_timeout_seconds=_env_float(env, "README_STUDIO_GENERATION_TIMEOUT", 120.0),
            host=env.get("HOST") or "0.0.0.0",  # nosec B104
            port=_env_int(env, "PORT", 3001),
            frontend_url=env.get("FRONTEND_URL") or "http://localhost:3002",
            home_dir=resolve_home(env),
            result_ttl_hours=_env_int(env, "README_STUDIO_RESULT_TTL_HOURS", 24),
        )
