"""Role-based access policy.

One table answers "may a subject holding ROLE perform ACTION on
RESOURCE?".  Route dependencies call is_allowed() before every
operation instead of checking role names inline.

Roles:
  super_admin     platform operator, every tenant
  provider_admin  training provider owner, full rights inside the tenant
  admin           tenant administrator; analytics is read-only
  staff           learner; reads courses and quizzes, takes quizzes,
                  asks for quiz resets
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Literal

Action = Literal["create", "read", "update", "delete"]

RESOURCES = (
    "courses",
    "users",
    "analytics",
    "products",
    "quizzes",
    "staff",
    "live_sessions",
    "grading",
    "reset_requests",
)

_CRUD: frozenset[Action] = frozenset({"create", "read", "update", "delete"})
_READ: frozenset[Action] = frozenset({"read"})
_NONE: frozenset[Action] = frozenset()

_POLICY: dict[str, dict[str, frozenset[Action]]] = {
    "super_admin": {resource: _CRUD for resource in RESOURCES},
    "provider_admin": {resource: _CRUD for resource in RESOURCES},
    "admin": {
        **{resource: _CRUD for resource in RESOURCES},
        "analytics": _READ,
    },
    "staff": {
        "courses": _READ,
        "quizzes": _READ,
        "live_sessions": _READ,
        "reset_requests": frozenset({"create"}),
    },
}

SUPER_ADMIN = "super_admin"


def is_allowed(role: str, resource: str, action: Action) -> bool:
    """Evaluate a single role.  Unknown roles and resources are denied."""
    return action in _POLICY.get(role, {}).get(resource, _NONE)


def any_allowed(roles: Iterable[str], resource: str, action: Action) -> bool:
    """A subject with several roles is allowed when any one role allows."""
    return any(is_allowed(role, resource, action) for role in roles)


def known_roles() -> frozenset[str]:
    return frozenset(_POLICY)
