"""Integrity rule engine and test-plan derivation."""

from readme_studio.engine.integrity import (
    RULES,
    Bucket,
    IntegrityResult,
    IntegrityRule,
    Issue,
    Severity,
    evaluate,
    get_all_issues,
    is_valid,
    summarize,
)
from readme_studio.engine.tests_plan import TestCase, TestsPlan, derive, summarize_plan

__all__ = [
    "RULES",
    "Bucket",
    "IntegrityResult",
    "IntegrityRule",
    "Issue",
    "Severity",
    "TestCase",
    "TestsPlan",
    "derive",
    "evaluate",
    "get_all_issues",
    "is_valid",
    "summarize",
    "summarize_plan",
]
