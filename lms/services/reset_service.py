"""Quiz reset requests.

A learner who has used up their attempts (or wants to retake a graded
quiz) asks for a reset.  Approval wipes the learner's standing in the
course in one transaction: the completion record goes, prior attempts
are voided so the attempt counter starts again, and the learner is
notified.  Rejection only records the decision and notifies.
"""

from __future__ import annotations

import logging
from uuid import UUID

from lms.core.clock import utc_now
from lms.core.errors import Conflict, DuplicateResetRequest, NotFound
from lms.core.metrics import RESET_REQUESTS
from lms.db.unit_of_work import UnitOfWork
from lms.models.completion import ResetRequest, ResetStatus
from lms.models.course import Course
from lms.repos.reset_request_repo import PendingResetExists
from lms.services.cache import invalidate_status
from lms.services.lookups import course_ids_in_scope, load_course
from lms.services.notification_service import notify
from lms.services.results import OperationResult, operation

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "You already have a pending reset request for this course."


@operation("request_quiz_reset", failure_message="Failed to submit reset request.")
async def request_quiz_reset(
    uow: UnitOfWork, user_id: str, course_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[ResetRequest]:
    async with uow:
        await load_course(uow, course_id, org_id)
        if await uow.reset_requests.get_pending(user_id, course_id) is not None:
            raise DuplicateResetRequest(DUPLICATE_MESSAGE)
        request = ResetRequest.new(
            user_id=user_id, course_id=course_id, requested_at=utc_now()
        )
        try:
            await uow.reset_requests.add(request)
        except PendingResetExists:
            raise DuplicateResetRequest(DUPLICATE_MESSAGE) from None
        uow.after_commit(lambda: invalidate_status(user_id, course_id))

    RESET_REQUESTS.labels(action="requested").inc()
    logger.info("Reset requested user=%s course=%s", user_id, course_id)
    return OperationResult.ok("Reset request submitted.", request)


async def _load_pending(
    uow: UnitOfWork, request_id: UUID, org_id: UUID | None
) -> tuple[ResetRequest, Course]:
    request = await uow.reset_requests.get(request_id)
    if request is None:
        raise NotFound("Reset request not found.")
    try:
        course = await load_course(uow, request.course_id, org_id)
    except NotFound:
        raise NotFound("Reset request not found.") from None
    if request.status != "PENDING":
        raise Conflict(f"This reset request has already been {request.status.lower()}.")
    return request, course


@operation("approve_reset_request", failure_message="Failed to approve reset request.")
async def approve_reset_request(
    uow: UnitOfWork, request_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[ResetRequest]:
    async with uow:
        request, course = await _load_pending(uow, request_id, org_id)
        removed = await uow.completions.delete(request.user_id, course.id)
        voided = 0
        quiz = await uow.quizzes.get_by_course(course.id)
        if quiz is not None:
            voided = await uow.submissions.void_for_user(request.user_id, quiz.id)
        approved = await uow.reset_requests.set_status(request.id, "APPROVED", utc_now())
        await notify(
            uow,
            request.user_id,
            "Quiz Reset Approved",
            f'Your quiz reset request for "{course.title}" was approved. '
            "You can take the quiz again.",
        )
        uow.after_commit(lambda: invalidate_status(request.user_id, course.id))

    RESET_REQUESTS.labels(action="approved").inc()
    logger.info(
        "Reset approved request=%s user=%s course=%s completion_removed=%s voided=%d",
        request_id,
        request.user_id,
        course.id,
        removed,
        voided,
    )
    return OperationResult.ok("Reset request approved.", approved)


@operation("reject_reset_request", failure_message="Failed to reject reset request.")
async def reject_reset_request(
    uow: UnitOfWork, request_id: UUID, *, org_id: UUID | None = None
) -> OperationResult[ResetRequest]:
    async with uow:
        request, course = await _load_pending(uow, request_id, org_id)
        rejected = await uow.reset_requests.set_status(request.id, "REJECTED", utc_now())
        await notify(
            uow,
            request.user_id,
            "Quiz Reset Rejected",
            f'Your quiz reset request for "{course.title}" was rejected.',
        )
        uow.after_commit(lambda: invalidate_status(request.user_id, course.id))

    RESET_REQUESTS.labels(action="rejected").inc()
    logger.info("Reset rejected request=%s user=%s", request_id, request.user_id)
    return OperationResult.ok("Reset request rejected.", rejected)


@operation("list_reset_requests", failure_message="Failed to load reset requests.")
async def list_reset_requests(
    uow: UnitOfWork,
    *,
    status: ResetStatus | None = "PENDING",
    org_id: UUID | None = None,
) -> OperationResult[list[ResetRequest]]:
    async with uow:
        course_ids = None
        if org_id is not None:
            course_ids = await course_ids_in_scope(uow, org_id)
        rows = await uow.reset_requests.list(status=status, course_ids=course_ids)
    return OperationResult.ok("Reset requests loaded.", rows)
