"""Tests for test-plan derivation."""

from __future__ import annotations

from typing import Any

import pytest

from readme_studio.engine.integrity import evaluate
from readme_studio.engine.tests_plan import derive, summarize_plan
from readme_studio.spec.models import Specification


def _spec(**overrides: Any) -> Specification:
    payload: dict[str, Any] = {
        "meta": {"projectName": "Atlas", "summary": "Inventory tracker"},
        "stack": {"type": "fullstack"},
        "auth": {"enabled": False},
        "features": [],
        "entities": [],
        "api": {"type": "none"},
        "tests": {"unit": True, "integration": True, "e2e": True, "manualChecklists": True},
    }
    payload.update(overrides)
    return Specification.from_dict(payload)


def _names(cases: tuple[Any, ...]) -> list[str]:
    return [case.name for case in cases]


def test_auth_emits_credential_unit_tests() -> None:
    plan = derive(_spec(auth={"enabled": True, "methods": ["email/password"], "roles": ["u"]}))
    assert _names(plan.unit_tests) == [
        "Authentication - Valid Credentials",
        "Authentication - Invalid Credentials",
    ]


def test_oauth_method_adds_oauth_case() -> None:
    plan = derive(_spec(auth={"enabled": True, "methods": ["OAuth"], "roles": ["u"]}))
    assert "OAuth Integration" in _names(plan.unit_tests)


def test_unique_constraint_case_uses_first_unique_field() -> None:
    entity = {
        "name": "User",
        "fields": [
            {"name": "id", "type": "string"},
            {"name": "email", "type": "string", "unique": True},
            {"name": "handle", "type": "string", "unique": True},
        ],
    }
    plan = derive(_spec(entities=[entity]))
    unique_cases = [case for case in plan.unit_tests if case.name == "User - Unique Constraint"]
    assert len(unique_cases) == 1
    case = unique_cases[0]
    assert case.description == "Test unique constraint on email, handle"
    assert case.steps == ("Create first User", "Attempt to create duplicate with same email")


def test_uniqueness_cases_count_one_per_entity() -> None:
    entities = [
        {
            "name": name,
            "fields": [
                {"name": "a", "unique": True},
                {"name": "b", "unique": True},
            ],
        }
        for name in ("User", "Order", "Invoice")
    ]
    plan = derive(_spec(entities=entities))
    unique_cases = [case for case in plan.unit_tests if case.name.endswith("Unique Constraint")]
    assert len(unique_cases) == 3
    validation_cases = [case for case in plan.unit_tests if case.name.endswith("Validation")]
    assert len(validation_cases) == 3


def test_rest_endpoint_with_get_and_post_yields_two_cases() -> None:
    api = {
        "type": "rest",
        "endpoints": [
            {"id": "e1", "path": "/users", "methods": ["GET", "POST"], "description": "Users"},
            {"id": "e2", "path": "/users/:id", "methods": ["DELETE"], "description": "Remove"},
        ],
    }
    plan = derive(_spec(api=api))
    assert _names(plan.unit_tests) == ["GET /users", "POST /users"]
    assert plan.unit_tests[0].description == "Test GET endpoint: Users"


def test_graphql_endpoints_produce_no_endpoint_cases() -> None:
    api = {"type": "graphql", "endpoints": [{"path": "/graphql", "methods": ["POST"]}]}
    plan = derive(_spec(api=api))
    assert plan.unit_tests == ()


def test_integration_gate_empties_bucket() -> None:
    plan = derive(
        _spec(
            tests={"integration": False, "e2e": True},
            auth={"enabled": True, "roles": ["admin"]},
            api={"type": "rest", "endpoints": [{"path": "/x", "authRequired": True}]},
            entities=[{"name": "User"}],
        )
    )
    assert plan.integration_tests == ()


def test_e2e_gate_and_backend_stack_empty_bucket() -> None:
    features = [{"id": "f", "name": "Search"}]
    assert derive(_spec(tests={"e2e": False}, features=features)).e2e_tests == ()
    assert derive(_spec(stack={"type": "backend"}, features=features)).e2e_tests == ()


def test_manual_gate_empties_bucket() -> None:
    plan = derive(_spec(tests={"manualChecklists": False}, auth={"enabled": True}))
    assert plan.manual_checks == ()


def test_integration_crud_and_protected_endpoints() -> None:
    plan = derive(
        _spec(
            auth={"enabled": True, "roles": ["admin"]},
            api={
                "type": "rest",
                "endpoints": [
                    {"path": "/orders", "methods": ["GET"], "authRequired": True},
                    {"path": "/health", "methods": ["GET"], "authRequired": False},
                ],
            },
            entities=[{"name": "Order"}],
        )
    )
    assert _names(plan.integration_tests) == [
        "Full API Flow - CRUD Operations",
        "Protected Endpoint - /orders",
    ]


def test_relationship_case_only_checks_first_two_entities() -> None:
    linked = [
        {"name": "User", "relations": [{"type": "one-to-many", "target": "Order"}]},
        {"name": "Order"},
    ]
    plan = derive(_spec(entities=linked))
    assert "User - Order Relationship" in _names(plan.integration_tests)

    later_pair = [
        {"name": "User"},
        {"name": "Order", "relations": [{"type": "one-to-many", "target": "Invoice"}]},
        {"name": "Invoice"},
    ]
    plan = derive(_spec(entities=later_pair))
    assert not any(name.endswith("Relationship") for name in _names(plan.integration_tests))


def test_e2e_features_and_main_journey() -> None:
    plan = derive(
        _spec(
            auth={"enabled": True, "roles": ["u"]},
            features=[{"id": "1", "name": "Search"}, {"id": "2", "name": "Checkout"}],
        )
    )
    assert _names(plan.e2e_tests) == [
        "User Registration and Login Flow",
        "Feature: Search",
        "Feature: Checkout",
        "Main User Journey",
    ]


def test_manual_checks_order() -> None:
    plan = derive(_spec(auth={"enabled": True}, entities=[{"name": "User"}]))
    assert _names(plan.manual_checks) == [
        "Cross-Browser Compatibility",
        "Performance Baseline",
        "Security Audit",
        "Accessibility Review",
        "User - Data Integrity",
    ]


def test_end_to_end_scenario() -> None:
    spec = _spec(
        auth={"enabled": True, "methods": ["email/password"], "roles": ["admin"]},
        api={"type": "rest", "endpoints": []},
        entities=[{"name": "User", "fields": [{"name": "email", "unique": True}]}],
    )
    assert evaluate(spec).conflicts == ()
    plan = derive(spec)
    assert len(plan.unit_tests) >= 2
    assert "Security Audit" in _names(plan.manual_checks)
    assert "Full API Flow - CRUD Operations" in _names(plan.integration_tests)


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"auth": {"enabled": True, "methods": ["OAuth"]}, "features": [{"name": "A"}]},
        {"entities": [{"name": "A", "relations": [{"target": "B"}]}, {"name": "B"}]},
    ],
)
def test_derive_is_idempotent(overrides: dict[str, Any]) -> None:
    spec = _spec(**overrides)
    assert derive(spec) == derive(spec)
    assert derive(spec).to_dict() == derive(spec).to_dict()


def test_malformed_specification_derives_without_error() -> None:
    spec = Specification.from_dict({"entities": [None, {"fields": "x"}], "tests": "all"})
    plan = derive(spec)
    assert plan.integration_tests == ()
    assert _names(plan.unit_tests) == [" - Validation"]


def test_plan_wire_shape_and_summary() -> None:
    spec = _spec(auth={"enabled": True, "roles": ["admin"]}, entities=[{"name": "User"}])
    plan = derive(spec)
    payload = plan.to_dict()
    assert set(payload) == {"unitTests", "integrationTests", "e2eTests", "manualChecks"}
    assert "expectedResult" in payload["unitTests"][0]

    summary = summarize_plan(spec, plan)
    assert summary.startswith("Recommended Test Plan Summary")
    assert f"Unit Tests: {len(plan.unit_tests)} tests" in summary
    assert f"Manual Checks: {len(plan.manual_checks)} items" in summary
    assert summary.endswith(f"Total Test Items: {plan.total}")
