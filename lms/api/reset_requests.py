"""Quiz reset request endpoints.

Learners file requests against a course; reviewers approve or reject.
"""

from __future__ import annotations

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from lms.api.dependencies import Uow, require_permission
from lms.api.responses import ResultOut, respond
from lms.models.completion import ResetRequest
from lms.models.principal import Principal
from lms.services import reset_service

router = APIRouter(prefix="/v1", tags=["reset-requests"])


class ResetRequestOut(BaseModel):
    id: str
    user_id: str
    course_id: str
    status: str
    requested_at: int
    resolved_at: int | None


def reset_request_out(request: ResetRequest) -> ResetRequestOut:
    return ResetRequestOut(
        id=str(request.id),
        user_id=request.user_id,
        course_id=str(request.course_id),
        status=request.status,
        requested_at=request.requested_at,
        resolved_at=request.resolved_at,
    )


@router.post(
    "/courses/{course_id}/reset-requests", response_model=ResultOut[ResetRequestOut]
)
async def request_reset(
    course_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[
        Principal, Depends(require_permission("reset_requests", "create"))
    ],
) -> ResultOut:
    result = await reset_service.request_quiz_reset(
        uow, principal.user_id, course_id, org_id=principal.tenant_scope
    )
    return respond(
        result, response, reset_request_out, success_status=status.HTTP_201_CREATED
    )


@router.get("/reset-requests", response_model=ResultOut[list[ResetRequestOut]])
async def list_reset_requests(
    response: Response,
    uow: Uow,
    principal: Annotated[
        Principal, Depends(require_permission("reset_requests", "read"))
    ],
    status: Literal["PENDING", "APPROVED", "REJECTED"] | None = "PENDING",
) -> ResultOut:
    result = await reset_service.list_reset_requests(
        uow, status=status, org_id=principal.tenant_scope
    )
    return respond(result, response, lambda rows: [reset_request_out(r) for r in rows])


@router.post(
    "/reset-requests/{request_id}/approve", response_model=ResultOut[ResetRequestOut]
)
async def approve_reset_request(
    request_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[
        Principal, Depends(require_permission("reset_requests", "update"))
    ],
) -> ResultOut:
    result = await reset_service.approve_reset_request(
        uow, request_id, org_id=principal.tenant_scope
    )
    return respond(result, response, reset_request_out)


@router.post(
    "/reset-requests/{request_id}/reject", response_model=ResultOut[ResetRequestOut]
)
async def reject_reset_request(
    request_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[
        Principal, Depends(require_permission("reset_requests", "update"))
    ],
) -> ResultOut:
    result = await reset_service.reject_reset_request(
        uow, request_id, org_id=principal.tenant_scope
    )
    return respond(result, response, reset_request_out)
