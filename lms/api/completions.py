"""Learner standing: course status, module progress, completion and certificates.

GET /v1/courses/{course_id}/status is served read-through from the
status cache (check cache → miss → compute → populate → return).  The
services drop the entry after anything that changes it commits.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from lms.api.dependencies import CurrentUser, Uow, require_permission
from lms.api.responses import ResultOut, respond
from lms.core.config import SETTINGS
from lms.core.metrics import CACHE_OPERATIONS
from lms.models.completion import UserCompletedCourse
from lms.models.principal import Principal
from lms.services import completion_service, submission_service
from lms.services.cache import cache_service, status_key
from lms.services.completion_service import CertificateEligibility, ModuleProgress

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["completions"])


class CourseStatusOut(BaseModel):
    course_id: str
    quiz_id: str | None
    state: str
    attempts_used: int
    max_attempts: int
    can_attempt: bool
    has_passed: bool
    score: int | None


class CompleteIn(BaseModel):
    score: int = 100


class CompletionOut(BaseModel):
    course_id: str
    score: int
    completion_date: int


class CertificateOut(BaseModel):
    eligible: bool
    title: str
    completion_date: int | None
    score: int | None
    missing_course_ids: list[str]


class ModuleCompletionIn(BaseModel):
    completed: bool = True


class ModuleProgressOut(BaseModel):
    course_id: str
    module_ids: list[str]
    completed_module_ids: list[str]
    percent_complete: int


def completion_out(record: UserCompletedCourse) -> CompletionOut:
    return CompletionOut(
        course_id=str(record.course_id),
        score=record.score,
        completion_date=record.completion_date,
    )


def progress_out(progress: ModuleProgress) -> ModuleProgressOut:
    return ModuleProgressOut(
        course_id=str(progress.course_id),
        module_ids=[str(m) for m in progress.module_ids],
        completed_module_ids=[str(m) for m in progress.completed_ids],
        percent_complete=progress.percent_complete,
    )


def certificate_out(cert: CertificateEligibility) -> CertificateOut:
    return CertificateOut(
        eligible=cert.eligible,
        title=cert.title,
        completion_date=cert.completion_date,
        score=cert.score,
        missing_course_ids=[str(c) for c in cert.missing_course_ids],
    )


@router.get("/courses/{course_id}/status", response_model=ResultOut[CourseStatusOut])
async def get_course_status(
    course_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    cache_key = status_key(principal.user_id, course_id)

    cached = await cache_service.get(cache_key)
    if cached is not None:
        CACHE_OPERATIONS.labels(operation="hit").inc()
        return ResultOut(
            success=True,
            message="Course status loaded.",
            data=CourseStatusOut(**json.loads(cached)),
        )
    CACHE_OPERATIONS.labels(operation="miss").inc()

    result = await submission_service.attempt_status(
        uow, principal.user_id, course_id, org_id=principal.tenant_scope
    )
    if not result.success:
        return respond(result, response)

    data = asdict(result.data)
    data["course_id"] = str(data["course_id"])
    data["quiz_id"] = str(data["quiz_id"]) if data["quiz_id"] else None
    out = CourseStatusOut(**data)
    if SETTINGS.status_cache_ttl > 0:
        await cache_service.set(
            cache_key, out.model_dump_json(), SETTINGS.status_cache_ttl
        )
    return ResultOut(success=True, message=result.message, data=out)


@router.post("/courses/{course_id}/complete", response_model=ResultOut[CompletionOut])
async def complete_course(
    course_id: UUID,
    payload: CompleteIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await completion_service.complete_course(
        uow,
        principal.user_id,
        course_id,
        payload.score,
        org_id=principal.tenant_scope,
    )
    return respond(result, response, completion_out)


@router.get(
    "/courses/{course_id}/certificate", response_model=ResultOut[CertificateOut]
)
async def get_course_certificate(
    course_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await completion_service.course_certificate(
        uow, principal.user_id, course_id, org_id=principal.tenant_scope
    )
    return respond(result, response, certificate_out)


@router.get(
    "/learning-paths/{path_id}/certificate", response_model=ResultOut[CertificateOut]
)
async def get_learning_path_certificate(
    path_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await completion_service.learning_path_certificate(
        uow, principal.user_id, path_id, org_id=principal.tenant_scope
    )
    return respond(result, response, certificate_out)


@router.get("/me/completions", response_model=ResultOut[list[CompletionOut]])
async def list_my_completions(
    response: Response,
    uow: Uow,
    principal: CurrentUser,
) -> ResultOut:
    result = await completion_service.list_completions(uow, principal.user_id)
    return respond(result, response, lambda rows: [completion_out(r) for r in rows])


@router.get(
    "/courses/{course_id}/progress", response_model=ResultOut[ModuleProgressOut]
)
async def get_module_progress(
    course_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await completion_service.module_progress(
        uow, principal.user_id, course_id, org_id=principal.tenant_scope
    )
    return respond(result, response, progress_out)


@router.put(
    "/modules/{module_id}/completion", response_model=ResultOut[ModuleProgressOut]
)
async def set_module_completion(
    module_id: UUID,
    payload: ModuleCompletionIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await completion_service.set_module_completion(
        uow,
        principal.user_id,
        module_id,
        payload.completed,
        org_id=principal.tenant_scope,
    )
    return respond(result, response, progress_out)
