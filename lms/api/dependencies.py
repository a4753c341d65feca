from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lms.core.logging import user_id_var
from lms.core.policy import Action, known_roles
from lms.db.unit_of_work import UnitOfWork, get_uow
from lms.models.principal import Principal
from lms.services import token_service

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

Uow = Annotated[UnitOfWork, Depends(get_uow)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal.

    Used as a FastAPI dependency on any protected endpoint.  Async so the
    caller id it puts into the logging context is visible to the endpoint.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        claims = token_service.decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    try:
        org_id = UUID(claims["org_id"]) if claims.get("org_id") else None
    except ValueError:
        logger.warning("Token with malformed org_id rejected")
        raise _unauthorized("Invalid token") from None

    principal = Principal(
        user_id=claims["sub"],
        roles=frozenset(claims.get("roles") or token_service.DEFAULT_ROLES),
        org_id=org_id,
    )
    user_id_var.set(principal.user_id)
    if principal.org_id is None and not principal.is_super_admin():
        # Only platform operators act outside a tenant.
        logger.warning("Token without org_id rejected for user=%s", principal.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token carries no organization",
        )
    unknown = principal.roles - known_roles()
    if unknown:
        logger.warning(
            "Token for user=%s carries unknown roles %s", principal.user_id, sorted(unknown)
        )
    logger.debug(
        "Token validated for user=%s roles=%s org=%s",
        principal.user_id,
        principal.roles,
        principal.org_id,
    )
    return principal


CurrentUser = Annotated[Principal, Depends(require_user)]


def require_permission(resource: str, action: Action):
    """Dependency factory: demand that some role of the caller allows the action.

    Usage: Depends(require_permission("grading", "update"))
    Returns the Principal if allowed, else 403.
    """

    def _guard(principal: CurrentUser) -> Principal:
        if not principal.can(resource, action):
            logger.warning(
                "Access denied: user=%s roles=%s action=%s resource=%s",
                principal.user_id,
                sorted(principal.roles),
                action,
                resource,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard
