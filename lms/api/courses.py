"""Course catalog, course module and learning path endpoints.

Courses are created inside the caller's tenant.  Platform operators
(super_admin) may name the tenant explicitly.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from lms.api.dependencies import Uow, require_permission
from lms.api.responses import ResultOut, respond
from lms.models.course import Course, CourseModule, LearningPath
from lms.models.principal import Principal
from lms.services import course_service

router = APIRouter(prefix="/v1", tags=["courses"])


class CourseIn(BaseModel):
    title: str
    has_certificate: bool = False
    org_id: UUID | None = None  # honored for platform operators only


class CourseOut(BaseModel):
    id: str
    title: str
    org_id: str | None
    has_certificate: bool


class LearningPathIn(BaseModel):
    title: str
    course_ids: list[UUID] = Field(default_factory=list)
    has_certificate: bool = False
    org_id: UUID | None = None


class LearningPathOut(BaseModel):
    id: str
    title: str
    org_id: str | None
    has_certificate: bool
    course_ids: list[str]


class ModuleIn(BaseModel):
    title: str


class ModuleOut(BaseModel):
    id: str
    course_id: str
    position: int
    title: str


def course_out(course: Course) -> CourseOut:
    return CourseOut(
        id=str(course.id),
        title=course.title,
        org_id=str(course.org_id) if course.org_id else None,
        has_certificate=course.has_certificate,
    )


def learning_path_out(path: LearningPath) -> LearningPathOut:
    return LearningPathOut(
        id=str(path.id),
        title=path.title,
        org_id=str(path.org_id) if path.org_id else None,
        has_certificate=path.has_certificate,
        course_ids=[str(c) for c in path.course_ids],
    )


def module_out(module: CourseModule) -> ModuleOut:
    return ModuleOut(
        id=str(module.id),
        course_id=str(module.course_id),
        position=module.position,
        title=module.title,
    )


def _target_org(principal: Principal, requested: UUID | None) -> UUID | None:
    if principal.is_super_admin() and requested is not None:
        return requested
    return principal.org_id


@router.post("/courses", response_model=ResultOut[CourseOut])
async def create_course(
    payload: CourseIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "create"))],
) -> ResultOut:
    result = await course_service.add_course(
        uow,
        payload.title,
        org_id=_target_org(principal, payload.org_id),
        has_certificate=payload.has_certificate,
    )
    return respond(result, response, course_out, success_status=status.HTTP_201_CREATED)


@router.get("/courses", response_model=ResultOut[list[CourseOut]])
async def list_courses(
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await course_service.list_courses(uow, org_id=principal.tenant_scope)
    return respond(result, response, lambda rows: [course_out(c) for c in rows])


@router.post("/learning-paths", response_model=ResultOut[LearningPathOut])
async def create_learning_path(
    payload: LearningPathIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "create"))],
) -> ResultOut:
    result = await course_service.add_learning_path(
        uow,
        payload.title,
        payload.course_ids,
        org_id=_target_org(principal, payload.org_id),
        has_certificate=payload.has_certificate,
    )
    return respond(
        result, response, learning_path_out, success_status=status.HTTP_201_CREATED
    )


@router.get("/learning-paths", response_model=ResultOut[list[LearningPathOut]])
async def list_learning_paths(
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await course_service.list_learning_paths(
        uow, org_id=principal.tenant_scope
    )
    return respond(result, response, lambda rows: [learning_path_out(p) for p in rows])


@router.post("/courses/{course_id}/modules", response_model=ResultOut[ModuleOut])
async def create_module(
    course_id: UUID,
    payload: ModuleIn,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "update"))],
) -> ResultOut:
    result = await course_service.add_module(
        uow, course_id, payload.title, org_id=principal.tenant_scope
    )
    return respond(result, response, module_out, success_status=status.HTTP_201_CREATED)


@router.get("/courses/{course_id}/modules", response_model=ResultOut[list[ModuleOut]])
async def list_modules(
    course_id: UUID,
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("courses", "read"))],
) -> ResultOut:
    result = await course_service.list_modules(
        uow, course_id, org_id=principal.tenant_scope
    )
    return respond(result, response, lambda rows: [module_out(m) for m in rows])
