"""HTTP API for readme-studio."""

from readme_studio.server.app import create_app

__all__ = ["create_app"]
