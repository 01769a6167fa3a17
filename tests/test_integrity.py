"""Tests for the integrity rule engine."""

from __future__ import annotations

from typing import Any

import pytest

from readme_studio.engine.integrity import (
    RULES,
    Bucket,
    IntegrityRule,
    Severity,
    evaluate,
    get_all_issues,
    is_valid,
    summarize,
)
from readme_studio.spec.models import Specification


def _spec(**overrides: Any) -> Specification:
    payload: dict[str, Any] = {
        "meta": {"projectName": "Atlas", "summary": "Inventory tracker"},
        "stack": {"type": "fullstack", "architecture": "monolith"},
        "auth": {"enabled": False, "methods": [], "roles": []},
        "features": [],
        "entities": [],
        "api": {"type": "none", "endpoints": []},
        "tests": {"unit": True},
        "deployment": {"platform": "vercel", "ci": {"enabled": False}},
    }
    payload.update(overrides)
    return Specification.from_dict(payload)


def _entity(name: str, **extra: Any) -> dict[str, Any]:
    return {"name": name, "fields": [{"name": "id", "type": "string"}], **extra}


def test_clean_specification_has_no_issues() -> None:
    result = evaluate(_spec())
    assert result.codes() == []
    assert is_valid(_spec())
    assert summarize(result) == "No issues detected."


def test_auth_without_roles_is_a_conflict() -> None:
    result = evaluate(_spec(auth={"enabled": True, "methods": ["OAuth"], "roles": []}))
    assert [issue.code for issue in result.conflicts] == ["AUTH_NO_ROLES"]
    assert result.conflicts[0].severity is Severity.error
    assert not is_valid(_spec(auth={"enabled": True, "roles": []}))


def test_auth_with_roles_clears_conflict() -> None:
    result = evaluate(_spec(auth={"enabled": True, "methods": ["OAuth"], "roles": ["admin"]}))
    assert "AUTH_NO_ROLES" not in result.codes()
    assert is_valid(_spec(auth={"enabled": True, "roles": ["admin"]}))


def test_password_auth_without_policy_is_a_suggestion() -> None:
    result = evaluate(
        _spec(auth={"enabled": True, "methods": ["email/password"], "roles": ["user"]})
    )
    assert [issue.code for issue in result.suggestions] == ["AUTH_NO_POLICY"]
    assert result.suggestions[0].severity is Severity.warning

    with_policy = evaluate(
        _spec(
            auth={
                "enabled": True,
                "methods": ["email/password"],
                "roles": ["user"],
                "security": {"passwordPolicy": "min 12 chars"},
            }
        )
    )
    assert "AUTH_NO_POLICY" not in with_policy.codes()


def test_api_on_frontend_only_stack_is_a_warning() -> None:
    result = evaluate(_spec(stack={"type": "frontend"}, api={"type": "rest"}))
    assert [issue.code for issue in result.warnings] == ["API_NO_BACKEND"]


def test_graphql_on_frontend_only_stack_is_both_conflict_and_warning() -> None:
    result = evaluate(_spec(stack={"type": "frontend"}, api={"type": "graphql"}))
    assert [issue.code for issue in result.conflicts] == ["GRAPHQL_NO_BACKEND"]
    assert "API_NO_BACKEND" in [issue.code for issue in result.warnings]


def test_features_without_entities_is_a_suggestion() -> None:
    result = evaluate(_spec(features=[{"id": "f1", "name": "Search"}]))
    assert "FEATURES_NO_ENTITIES" in [issue.code for issue in result.suggestions]


def test_e2e_without_api_is_a_suggestion() -> None:
    result = evaluate(_spec(tests={"e2e": True}))
    assert "E2E_NO_API" in [issue.code for issue in result.suggestions]


def test_frontend_entities_and_relations_raise_warnings() -> None:
    entities = [
        _entity("User", relations=[{"type": "one-to-many", "target": "Order"}]),
        _entity("Order"),
    ]
    result = evaluate(_spec(stack={"type": "frontend"}, entities=entities))
    assert [issue.code for issue in result.warnings] == [
        "ENTITIES_NO_BACKEND",
        "RELATIONS_NO_BACKEND",
    ]


def test_single_frontend_entity_is_not_flagged() -> None:
    result = evaluate(_spec(stack={"type": "frontend"}, entities=[_entity("User")]))
    assert "ENTITIES_NO_BACKEND" not in result.codes()


def test_microservices_with_one_entity_is_a_suggestion() -> None:
    result = evaluate(
        _spec(stack={"type": "backend", "architecture": "microservices"}, entities=[_entity("A")])
    )
    assert "MICROSERVICES_MINIMAL" in [issue.code for issue in result.suggestions]

    larger = evaluate(
        _spec(
            stack={"type": "backend", "architecture": "microservices"},
            entities=[_entity("A"), _entity("B")],
        )
    )
    assert "MICROSERVICES_MINIMAL" not in larger.codes()


def test_database_configuration_is_flagged_as_unsupported() -> None:
    result = evaluate(_spec(stack={"type": "backend", "database": {"type": "postgres"}}))
    assert "DATABASE_NOT_IMPLEMENTED" in [issue.code for issue in result.suggestions]


def test_rate_limiting_without_auth_is_a_suggestion() -> None:
    result = evaluate(_spec(auth={"enabled": False, "security": {"rateLimiting": True}}))
    assert "RATE_LIMIT_NO_AUTH" in [issue.code for issue in result.suggestions]


def test_ci_without_tests_is_a_suggestion() -> None:
    result = evaluate(_spec(tests={}, deployment={"ci": {"enabled": True}}))
    assert "NO_TESTS_WITH_CI" in [issue.code for issue in result.suggestions]

    tested = evaluate(_spec(tests={"integration": True}, deployment={"ci": {"enabled": True}}))
    assert "NO_TESTS_WITH_CI" not in tested.codes()


def test_rules_table_pairs_severity_and_bucket_explicitly() -> None:
    pairs = {rule.code: (rule.severity, rule.bucket) for rule in RULES}
    assert len(RULES) == 12
    assert pairs["AUTH_NO_ROLES"] == (Severity.error, Bucket.conflicts)
    assert pairs["GRAPHQL_NO_BACKEND"] == (Severity.error, Bucket.conflicts)
    assert pairs["API_NO_BACKEND"] == (Severity.warning, Bucket.warnings)
    assert pairs["AUTH_NO_POLICY"] == (Severity.warning, Bucket.suggestions)
    for rule in RULES:
        if rule.bucket is Bucket.conflicts:
            assert rule.severity is Severity.error


def test_issues_keep_rule_order_within_buckets() -> None:
    spec = _spec(
        stack={"type": "frontend", "architecture": "microservices", "database": {"type": "x"}},
        auth={"enabled": False, "security": {"rateLimiting": True}},
        features=[{"id": "f1", "name": "Search"}],
        tests={"e2e": True},
    )
    result = evaluate(spec)
    assert [issue.code for issue in result.suggestions] == [
        "FEATURES_NO_ENTITIES",
        "E2E_NO_API",
        "MICROSERVICES_MINIMAL",
        "DATABASE_NOT_IMPLEMENTED",
        "RATE_LIMIT_NO_AUTH",
    ]


def test_evaluate_is_deterministic() -> None:
    spec = _spec(auth={"enabled": True, "methods": ["email/password"]}, tests={"e2e": True})
    assert evaluate(spec) == evaluate(spec)
    assert evaluate(spec).to_dict() == evaluate(spec).to_dict()


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"auth": {"enabled": True}},
        {"stack": {"type": "frontend"}, "api": {"type": "graphql"}},
        {"features": [{"name": "x"}], "tests": {"e2e": True}},
    ],
)
def test_get_all_issues_counts_conflicts_and_warnings(overrides: dict[str, Any]) -> None:
    spec = _spec(**overrides)
    result = evaluate(spec)
    issues = get_all_issues(spec)
    assert len(issues) == len(result.conflicts) + len(result.warnings)
    assert issues == [*result.conflicts, *result.warnings]


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"meta": None, "auth": "yes", "entities": "none"},
        {"entities": [None, 3, {"relations": "bad"}], "api": {"endpoints": [1]}},
        {"tests": {"unit": "true"}, "deployment": {"ci": []}},
    ],
)
def test_malformed_specification_never_raises(payload: dict[str, Any]) -> None:
    result = evaluate(Specification.from_dict(payload))
    assert isinstance(result.codes(), list)


def test_raising_predicate_reads_as_false() -> None:
    def _broken(spec: Specification) -> bool:
        raise AttributeError("missing")

    rule = IntegrityRule(
        code="BROKEN",
        severity=Severity.error,
        bucket=Bucket.conflicts,
        predicate=_broken,
        message="never raised",
    )
    result = evaluate(_spec(), rules=(rule,))
    assert result.codes() == []


def test_issue_wire_shape_uses_type_key() -> None:
    result = evaluate(_spec(auth={"enabled": True}))
    payload = result.to_dict()
    assert payload["conflicts"][0] == {
        "type": "error",
        "code": "AUTH_NO_ROLES",
        "message": "Authentication is enabled but no roles are defined",
        "suggestion": "Add at least one role (e.g., admin, user, guest)",
    }
    assert payload["warnings"] == []


def test_summarize_lists_sections_with_suggestions() -> None:
    result = evaluate(_spec(auth={"enabled": True}, features=[{"name": "Search"}]))
    text = summarize(result)
    assert text.startswith("Errors (1):")
    assert "  - Authentication is enabled but no roles are defined" in text
    assert "    -> Add at least one role (e.g., admin, user, guest)" in text
    assert "Suggestions (1):" in text
    assert "Warnings" not in text


def test_bucket_lookup_matches_rule_placement() -> None:
    spec = _spec(auth={"enabled": True}, stack={"type": "frontend"}, api={"type": "rest"})
    result = evaluate(spec)
    for rule in RULES:
        if rule.code in result.codes():
            assert rule.issue() in result.bucket(rule.bucket)
