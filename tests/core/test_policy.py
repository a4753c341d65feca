"""Role policy table tests."""

from __future__ import annotations

from uuid import uuid4

import pytest

from lms.core import policy
from lms.models.principal import Principal


@pytest.mark.parametrize(
    ("role", "resource", "action", "allowed"),
    [
        ("super_admin", "grading", "update", True),
        ("provider_admin", "analytics", "delete", True),
        ("admin", "quizzes", "create", True),
        ("admin", "reset_requests", "update", True),
        ("admin", "analytics", "read", True),
        ("admin", "analytics", "update", False),
        ("staff", "quizzes", "read", True),
        ("staff", "quizzes", "update", False),
        ("staff", "courses", "read", True),
        ("staff", "courses", "create", False),
        ("staff", "grading", "read", False),
        ("staff", "reset_requests", "create", True),
        ("staff", "reset_requests", "update", False),
        ("staff", "analytics", "read", False),
        ("ghost", "courses", "read", False),
        ("admin", "unknown_resource", "read", False),
    ],
)
def test_is_allowed(role: str, resource: str, action: str, allowed: bool) -> None:
    assert policy.is_allowed(role, resource, action) is allowed  # type: ignore[arg-type]


def test_any_allowed_uses_most_permissive_role() -> None:
    assert policy.any_allowed({"staff", "admin"}, "grading", "update")
    assert not policy.any_allowed({"staff"}, "grading", "update")
    assert not policy.any_allowed(set(), "courses", "read")


def test_known_roles() -> None:
    assert policy.known_roles() == {"super_admin", "provider_admin", "admin", "staff"}


def test_tenant_scope_is_unrestricted_only_for_super_admin() -> None:
    org = uuid4()
    assert Principal("u", frozenset({"admin"}), org).tenant_scope == org
    assert Principal("u", frozenset({"super_admin"}), org).tenant_scope is None
    assert Principal("u", frozenset({"staff"}), org).can("quizzes", "read")
