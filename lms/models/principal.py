from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from lms.core import policy


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.

        user_id: subject from JWT
        roles: super_admin|provider_admin|admin|staff
        org_id: tenant (training provider) the subject belongs to;
                None only for platform operators
    """

    user_id: str
    roles: frozenset[str]
    org_id: UUID | None = None

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_super_admin(self) -> bool:
        return policy.SUPER_ADMIN in self.roles

    def can(self, resource: str, action: policy.Action) -> bool:
        return policy.any_allowed(self.roles, resource, action)

    @property
    def tenant_scope(self) -> UUID | None:
        """Org filter for tenant-scoped reads; None means every tenant."""
        if self.is_super_admin():
            return None
        return self.org_id
