"""Derive recommended test cases from a project specification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from readme_studio.spec.models import Endpoint, Entity, Feature, Specification


@dataclass(frozen=True)
class TestCase:
    """One human-readable test recommendation."""

    __test__ = False

    name: str
    description: str
    steps: tuple[str, ...]
    expected_result: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "steps": list(self.steps),
            "expectedResult": self.expected_result,
        }


@dataclass(frozen=True)
class TestsPlan:
    """Test recommendations grouped by category."""

    __test__ = False

    unit_tests: tuple[TestCase, ...] = ()
    integration_tests: tuple[TestCase, ...] = ()
    e2e_tests: tuple[TestCase, ...] = ()
    manual_checks: tuple[TestCase, ...] = ()

    @property
    def total(self) -> int:
        """Return the number of recommended items across all categories."""
        return (
            len(self.unit_tests)
            + len(self.integration_tests)
            + len(self.e2e_tests)
            + len(self.manual_checks)
        )

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "unitTests": [case.to_dict() for case in self.unit_tests],
            "integrationTests": [case.to_dict() for case in self.integration_tests],
            "e2eTests": [case.to_dict() for case in self.e2e_tests],
            "manualChecks": [case.to_dict() for case in self.manual_checks],
        }


def derive(spec: Specification) -> TestsPlan:
    """Build the four test buckets for a specification."""
    return TestsPlan(
        unit_tests=tuple(_unit_tests(spec)),
        integration_tests=tuple(_integration_tests(spec)),
        e2e_tests=tuple(_e2e_tests(spec)),
        manual_checks=tuple(_manual_checks(spec)),
    )


def summarize_plan(spec: Specification, plan: TestsPlan) -> str:
    """Render a short count-per-category summary of a plan."""
    rows = (
        (spec.tests.unit, "Unit Tests", len(plan.unit_tests), "tests"),
        (spec.tests.integration, "Integration Tests", len(plan.integration_tests), "tests"),
        (spec.tests.e2e, "End-to-End Tests", len(plan.e2e_tests), "tests"),
        (spec.tests.manual_checklists, "Manual Checks", len(plan.manual_checks), "items"),
    )
    lines = ["Recommended Test Plan Summary", ""]
    for enabled, label, count, unit in rows:
        if enabled and count > 0:
            lines.append(f"{label}: {count} {unit}")
    lines.append("")
    lines.append(f"Total Test Items: {plan.total}")
    return "\n".join(lines)


def _unit_tests(spec: Specification) -> list[TestCase]:
    """Build the unit cases when unit tests are enabled."""
    tests: list[TestCase] = []

    if spec.auth.enabled:
        tests.append(
            TestCase(
                name="Authentication - Valid Credentials",
                description="Test login with valid email and password",
                steps=(
                    "Create a test user account",
                    "Attempt login with valid credentials",
                    "Verify auth token is generated",
                ),
                expected_result="User is authenticated and token is returned",
            )
        )
        tests.append(
            TestCase(
                name="Authentication - Invalid Credentials",
                description="Test login with invalid password",
                steps=(
                    "Attempt login with valid email but invalid password",
                    "Verify error is returned",
                ),
                expected_result="Login fails with appropriate error message",
            )
        )
        if "OAuth" in spec.auth.methods:
            tests.append(
                TestCase(
                    name="OAuth Integration",
                    description="Test OAuth provider integration",
                    steps=(
                        "Redirect to OAuth provider",
                        "Complete OAuth flow",
                        "Verify user is created/logged in",
                    ),
                    expected_result="User is authenticated via OAuth",
                )
            )

    for entity in spec.entities:
        tests.extend(_entity_unit_tests(entity))

    if spec.api.type == "rest":
        for endpoint in spec.api.endpoints:
            tests.extend(_endpoint_unit_tests(endpoint))

    return tests


def _entity_unit_tests(entity: Entity) -> list[TestCase]:
    """Build validation and uniqueness cases for one entity."""
    tests = [
        TestCase(
            name=f"{entity.name} - Validation",
            description=f"Test {entity.name} entity validation rules",
            steps=(
                f"Create a {entity.name} with required fields",
                "Validate all constraints are enforced",
            ),
            expected_result=f"{entity.name} is created with valid data",
        )
    ]
    unique_fields = [item for item in entity.fields if item.unique]
    if unique_fields:
        # Only the first unique field drives the duplicate attempt.
        tests.append(
            TestCase(
                name=f"{entity.name} - Unique Constraint",
                description=(
                    "Test unique constraint on " + ", ".join(item.name for item in unique_fields)
                ),
                steps=(
                    f"Create first {entity.name}",
                    f"Attempt to create duplicate with same {unique_fields[0].name}",
                ),
                expected_result="Duplicate creation fails with constraint error",
            )
        )
    return tests


def _endpoint_unit_tests(endpoint: Endpoint) -> list[TestCase]:
    """Build one handler case per supported method of an endpoint."""
    tests: list[TestCase] = []
    if endpoint.supports("GET"):
        tests.append(
            TestCase(
                name=f"GET {endpoint.path}",
                description=f"Test GET endpoint: {endpoint.description}",
                steps=(
                    f"Send GET request to {endpoint.path}",
                    "Verify response status code",
                    "Verify response format",
                ),
                expected_result="Endpoint returns 200 OK with correct data format",
            )
        )
    if endpoint.supports("POST"):
        tests.append(
            TestCase(
                name=f"POST {endpoint.path}",
                description=f"Test POST endpoint: {endpoint.description}",
                steps=(
                    f"Send POST request with valid data to {endpoint.path}",
                    "Verify response status code is 201",
                    "Verify created resource is returned",
                ),
                expected_result="Resource is created and returned with 201 status",
            )
        )
    return tests


def _integration_tests(spec: Specification) -> list[TestCase]:
    """Build integration cases for the API and related entities."""
    if not spec.tests.integration:
        return []
    tests: list[TestCase] = []

    if spec.api.type != "none" and spec.entities:
        tests.append(
            TestCase(
                name="Full API Flow - CRUD Operations",
                description="Test complete CRUD flow through API",
                steps=(
                    "Create a resource via POST",
                    "Read the created resource via GET",
                    "Update the resource via PUT",
                    "Verify update is persisted",
                    "Delete the resource via DELETE",
                    "Verify deletion is complete",
                ),
                expected_result="All CRUD operations work correctly end-to-end",
            )
        )

    if spec.auth.enabled:
        for endpoint in spec.api.endpoints:
            if not endpoint.auth_required:
                continue
            tests.append(
                TestCase(
                    name=f"Protected Endpoint - {endpoint.path}",
                    description=f"Test authentication requirement on {endpoint.path}",
                    steps=(
                        f"Attempt access to {endpoint.path} without auth",
                        "Verify 401 response",
                        "Attempt access with valid auth token",
                        "Verify request succeeds",
                    ),
                    expected_result="Protected endpoints correctly enforce authentication",
                )
            )

    if len(spec.entities) > 1:
        # Only the first two entities are paired; other pairs are not searched.
        first, second = spec.entities[0], spec.entities[1]
        if any(relation.target == second.name for relation in first.relations):
            tests.append(
                TestCase(
                    name=f"{first.name} - {second.name} Relationship",
                    description=f"Test relationship between {first.name} and {second.name}",
                    steps=(
                        f"Create a {first.name}",
                        f"Create a {second.name}",
                        f"Link {second.name} to {first.name}",
                        "Verify relationship is established",
                    ),
                    expected_result=(
                        f"Relationship between {first.name} and {second.name} works correctly"
                    ),
                )
            )

    return tests


def _e2e_tests(spec: Specification) -> list[TestCase]:
    """Build browser workflow cases for stacks with a frontend."""
    if not spec.tests.e2e or spec.stack.type == "backend":
        return []
    tests: list[TestCase] = []

    if spec.auth.enabled:
        tests.append(
            TestCase(
                name="User Registration and Login Flow",
                description="Complete user registration and authentication flow",
                steps=(
                    "Navigate to registration page",
                    "Fill out registration form",
                    "Submit form",
                    "Verify success message",
                    "Navigate to login",
                    "Enter credentials",
                    "Verify dashboard is displayed",
                ),
                expected_result="User can register and login successfully",
            )
        )

    tests.extend(_feature_workflow(feature) for feature in spec.features)

    if spec.features:
        tests.append(
            TestCase(
                name="Main User Journey",
                description="Test complete user journey through application",
                steps=(
                    "User enters application",
                    "User completes onboarding (if applicable)",
                    "User accesses primary features",
                    "User completes main task flow",
                ),
                expected_result="User can complete primary objectives without errors",
            )
        )

    return tests


def _feature_workflow(feature: Feature) -> TestCase:
    """Build the end-to-end case for one feature."""
    return TestCase(
        name=f"Feature: {feature.name}",
        description=f"Test complete {feature.name} workflow",
        steps=(
            f"Navigate to {feature.name} section",
            f"Perform primary action for {feature.name}",
            "Verify result is displayed",
        ),
        expected_result=f"{feature.name} feature works end-to-end",
    )


def _manual_checks(spec: Specification) -> list[TestCase]:
    """Build the manual checklist items."""
    if not spec.tests.manual_checklists:
        return []
    checks = [
        TestCase(
            name="Cross-Browser Compatibility",
            description="Verify application works across different browsers",
            steps=(
                "Test on Chrome (latest)",
                "Test on Firefox (latest)",
                "Test on Safari (latest)",
                "Test on Edge (latest)",
                "Verify responsive design on mobile",
            ),
            expected_result="Application works correctly on all major browsers and devices",
        ),
        TestCase(
            name="Performance Baseline",
            description="Verify application performance meets baseline requirements",
            steps=(
                "Measure page load time",
                "Measure API response time",
                "Check memory usage",
                "Verify no console errors",
            ),
            expected_result="Application meets performance requirements",
        ),
    ]

    if spec.auth.enabled:
        checks.append(
            TestCase(
                name="Security Audit",
                description="Manual security review of authentication and data handling",
                steps=(
                    "Verify passwords are properly hashed",
                    "Verify tokens expire correctly",
                    "Test CSRF protection",
                    "Verify XSS prevention",
                    "Check SQL injection protection",
                ),
                expected_result="Application follows security best practices",
            )
        )

    checks.append(
        TestCase(
            name="Accessibility Review",
            description="Verify WCAG compliance and accessibility standards",
            steps=(
                "Test keyboard navigation",
                "Verify screen reader compatibility",
                "Check color contrast ratios",
                "Verify focus indicators",
            ),
            expected_result="Application is accessible to all users",
        )
    )

    for entity in spec.entities:
        checks.append(
            TestCase(
                name=f"{entity.name} - Data Integrity",
                description=f"Manual verification of {entity.name} data handling",
                steps=(
                    f"Create multiple {entity.name} records",
                    "Verify data is stored correctly",
                    "Export data and verify format",
                ),
                expected_result=f"{entity.name} data integrity is maintained",
            )
        )

    return checks
