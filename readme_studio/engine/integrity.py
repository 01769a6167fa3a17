"""Rule-based integrity checks over a project specification.

Every rule is a data record pairing a predicate with the severity of the issue
it raises and the bucket the issue is filed under. The two are chosen
independently: most advisory rules raise ``warning`` issues into the
``suggestions`` bucket.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from readme_studio.spec.models import Specification

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    """Severity tag carried by an issue."""

    error = "error"
    warning = "warning"


class Bucket(str, Enum):
    """Output partition an issue is appended to."""

    conflicts = "conflicts"
    warnings = "warnings"
    suggestions = "suggestions"


@dataclass(frozen=True)
class Issue:
    """One finding raised by an integrity rule."""

    severity: Severity
    code: str
    message: str
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire shape, where severity is keyed as ``type``."""
        payload: dict[str, Any] = {
            "type": self.severity.value,
            "code": self.code,
            "message": self.message,
        }
        if self.suggestion is not None:
            payload["suggestion"] = self.suggestion
        return payload


@dataclass(frozen=True)
class IntegrityResult:
    """Issues partitioned into conflicts, warnings and suggestions."""

    conflicts: tuple[Issue, ...] = ()
    warnings: tuple[Issue, ...] = ()
    suggestions: tuple[Issue, ...] = ()

    def bucket(self, name: Bucket) -> tuple[Issue, ...]:
        """Return the issues filed under one bucket."""
        return getattr(self, name.value)

    def codes(self) -> list[str]:
        """Return every issue code in bucket order."""
        return [issue.code for issue in (*self.conflicts, *self.warnings, *self.suggestions)]

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "conflicts": [issue.to_dict() for issue in self.conflicts],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "suggestions": [issue.to_dict() for issue in self.suggestions],
        }


@dataclass(frozen=True)
class IntegrityRule:
    """Predicate-to-issue mapping evaluated against a specification."""

    code: str
    severity: Severity
    bucket: Bucket
    predicate: Callable[[Specification], bool] = field(repr=False)
    message: str
    suggestion: str | None = None

    def issue(self) -> Issue:
        """Build the issue raised when the predicate holds."""
        return Issue(
            severity=self.severity,
            code=self.code,
            message=self.message,
            suggestion=self.suggestion,
        )


def _frontend_only(spec: Specification) -> bool:
    """Return whether the stack has no backend layer."""
    return spec.stack.type == "frontend"


def _any_tests(spec: Specification) -> bool:
    """Return whether any automated test kind is enabled."""
    return spec.tests.unit or spec.tests.integration or spec.tests.e2e


RULES: tuple[IntegrityRule, ...] = (
    IntegrityRule(
        code="AUTH_NO_ROLES",
        severity=Severity.error,
        bucket=Bucket.conflicts,
        predicate=lambda spec: spec.auth.enabled and len(spec.auth.roles) == 0,
        message="Authentication is enabled but no roles are defined",
        suggestion="Add at least one role (e.g., admin, user, guest)",
    ),
    IntegrityRule(
        code="AUTH_NO_POLICY",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: (
            spec.auth.enabled
            and "email/password" in spec.auth.methods
            and not spec.auth.security.password_policy
        ),
        message="Email/password authentication enabled without password policy",
        suggestion="Define a password policy (minimum length, complexity requirements, etc.)",
    ),
    IntegrityRule(
        code="API_NO_BACKEND",
        severity=Severity.warning,
        bucket=Bucket.warnings,
        predicate=lambda spec: spec.api.type != "none" and _frontend_only(spec),
        message="API is configured but stack type is frontend-only",
        suggestion="Either change stack type to fullstack/backend or disable API",
    ),
    IntegrityRule(
        code="FEATURES_NO_ENTITIES",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: len(spec.features) > 0 and len(spec.entities) == 0,
        message="Features are defined but no entities exist",
        suggestion="Consider adding entities to support these features",
    ),
    IntegrityRule(
        code="E2E_NO_API",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: spec.tests.e2e and spec.api.type == "none",
        message="End-to-end tests are enabled but no API is configured",
        suggestion="Either add an API or disable E2E tests",
    ),
    IntegrityRule(
        code="ENTITIES_NO_BACKEND",
        severity=Severity.warning,
        bucket=Bucket.warnings,
        predicate=lambda spec: len(spec.entities) > 1 and _frontend_only(spec),
        message="Multiple entities defined in frontend-only project",
        suggestion="Consider using a backend to manage these entities",
    ),
    IntegrityRule(
        code="RELATIONS_NO_BACKEND",
        severity=Severity.warning,
        bucket=Bucket.warnings,
        predicate=lambda spec: (
            any(len(entity.relations) > 0 for entity in spec.entities) and _frontend_only(spec)
        ),
        message="Entity relations defined in frontend-only project",
        suggestion="Add a backend to properly handle entity relationships",
    ),
    IntegrityRule(
        code="MICROSERVICES_MINIMAL",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: (
            spec.stack.architecture == "microservices" and len(spec.entities) < 2
        ),
        message="Microservices architecture selected with minimal entities",
        suggestion=(
            "Microservices may be overkill for projects with few entities. "
            "Consider using monolithic architecture."
        ),
    ),
    IntegrityRule(
        code="DATABASE_NOT_IMPLEMENTED",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: spec.stack.database.type is not None,
        message="Database configuration detected but not yet supported in MVP",
        suggestion="Database features will be available in a future version",
    ),
    IntegrityRule(
        code="RATE_LIMIT_NO_AUTH",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: spec.auth.security.rate_limiting and not spec.auth.enabled,
        message="Rate limiting enabled without authentication",
        suggestion="Rate limiting is typically used to protect authenticated endpoints",
    ),
    IntegrityRule(
        code="GRAPHQL_NO_BACKEND",
        severity=Severity.error,
        bucket=Bucket.conflicts,
        predicate=lambda spec: spec.api.type == "graphql" and _frontend_only(spec),
        message="GraphQL API requires a backend",
        suggestion="Change stack type to include a backend",
    ),
    IntegrityRule(
        code="NO_TESTS_WITH_CI",
        severity=Severity.warning,
        bucket=Bucket.suggestions,
        predicate=lambda spec: not _any_tests(spec) and spec.deployment.ci.enabled,
        message="CI/CD pipeline enabled but no automated tests configured",
        suggestion="Enable at least unit tests for CI/CD pipeline",
    ),
)


def _holds(rule: IntegrityRule, spec: Specification) -> bool:
    """Evaluate one predicate; a nullish or malformed field reads as false."""
    try:
        return bool(rule.predicate(spec))
    except (AttributeError, TypeError) as exc:
        logger.debug("Rule %s skipped on malformed specification: %s", rule.code, exc)
        return False


def evaluate(
    spec: Specification,
    rules: tuple[IntegrityRule, ...] = RULES,
) -> IntegrityResult:
    """Run every rule against the specification and partition the issues."""
    buckets: dict[Bucket, list[Issue]] = {bucket: [] for bucket in Bucket}
    for rule in rules:
        if _holds(rule, spec):
            buckets[rule.bucket].append(rule.issue())
    return IntegrityResult(
        conflicts=tuple(buckets[Bucket.conflicts]),
        warnings=tuple(buckets[Bucket.warnings]),
        suggestions=tuple(buckets[Bucket.suggestions]),
    )


def is_valid(spec: Specification) -> bool:
    """Return True when the specification has no conflicts."""
    return not evaluate(spec).conflicts


def get_all_issues(spec: Specification) -> list[Issue]:
    """Return conflicts followed by warnings, in rule order."""
    result = evaluate(spec)
    return [*result.conflicts, *result.warnings]


def summarize(result: IntegrityResult) -> str:
    """Render a plain-text summary of an integrity result."""
    sections = (
        ("Errors", result.conflicts),
        ("Warnings", result.warnings),
        ("Suggestions", result.suggestions),
    )
    lines: list[str] = []
    for title, issues in sections:
        if not issues:
            continue
        lines.append(f"{title} ({len(issues)}):")
        for issue in issues:
            lines.append(f"  - {issue.message}")
            if issue.suggestion:
                lines.append(f"    -> {issue.suggestion}")
    if not lines:
        return "No issues detected."
    return "\n".join(lines)
