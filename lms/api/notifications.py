from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response
from pydantic import BaseModel

from lms.api.dependencies import CurrentUser, Uow
from lms.api.responses import ResultOut, respond
from lms.models.notification import Notification
from lms.services import notification_service

router = APIRouter(prefix="/v1/notifications", tags=["notifications"])


class NotificationOut(BaseModel):
    id: str
    title: str
    description: str
    is_read: bool
    created_at: int


class MarkReadIn(BaseModel):
    ids: list[UUID] | None = None  # None marks every notification read


def notification_out(n: Notification) -> NotificationOut:
    return NotificationOut(
        id=str(n.id),
        title=n.title,
        description=n.description,
        is_read=n.is_read,
        created_at=n.created_at,
    )


@router.get("", response_model=ResultOut[list[NotificationOut]])
async def list_notifications(
    response: Response,
    uow: Uow,
    principal: CurrentUser,
    unread_only: bool = False,
) -> ResultOut:
    result = await notification_service.list_notifications(
        uow, principal.user_id, unread_only=unread_only
    )
    return respond(result, response, lambda rows: [notification_out(n) for n in rows])


@router.post("/read", response_model=ResultOut[int])
async def mark_read(
    payload: MarkReadIn,
    response: Response,
    uow: Uow,
    principal: CurrentUser,
) -> ResultOut:
    result = await notification_service.mark_notifications_read(
        uow, principal.user_id, payload.ids
    )
    return respond(result, response)
