from __future__ import annotations

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from lms.api.dependencies import Uow, require_permission
from lms.api.responses import ResultOut, respond
from lms.models.principal import Principal
from lms.services import analytics_service
from lms.services.analytics_service import CourseAnalytics

router = APIRouter(prefix="/v1/analytics", tags=["analytics"])


class CourseAnalyticsOut(BaseModel):
    course_id: str
    title: str
    learners: int
    completions: int
    passes: int
    pass_rate: float
    average_score: float | None


def analytics_out(row: CourseAnalytics) -> CourseAnalyticsOut:
    data = asdict(row)
    data["course_id"] = str(row.course_id)
    return CourseAnalyticsOut(**data)


@router.get("/courses", response_model=ResultOut[list[CourseAnalyticsOut]])
async def course_analytics(
    response: Response,
    uow: Uow,
    principal: Annotated[Principal, Depends(require_permission("analytics", "read"))],
) -> ResultOut:
    result = await analytics_service.course_analytics(
        uow, org_id=principal.tenant_scope
    )
    return respond(result, response, lambda rows: [analytics_out(r) for r in rows])
