"""Specification model and boundary validation."""

from readme_studio.spec.boundary import validate_payload
from readme_studio.spec.models import Specification, default_specification

__all__ = ["Specification", "default_specification", "validate_payload"]
