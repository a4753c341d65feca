"""PostgreSQL implementation of ResetRequestRepo."""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from lms.db.tables import ResetRequestRow
from lms.models.completion import ResetRequest, ResetStatus
from lms.repos.reset_request_repo import PendingResetExists


class PgResetRequestRepo:
    """Satisfies the ResetRequestRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, request: ResetRequest) -> None:
        self._session.add(
            ResetRequestRow(
                id=request.id,
                user_id=request.user_id,
                course_id=request.course_id,
                status=request.status,
                requested_at=request.requested_at,
                resolved_at=request.resolved_at,
            )
        )
        try:
            await self._session.flush()
        except IntegrityError as e:
            # A concurrent request won the race for the partial unique index.
            if "uq_reset_requests_pending" in str(e.orig):
                raise PendingResetExists(f"{request.user_id}:{request.course_id}") from e
            raise

    async def get(self, request_id: UUID) -> ResetRequest | None:
        row = await self._session.get(ResetRequestRow, request_id)
        if row is None:
            return None
        return _row_to_request(row)

    async def get_pending(self, user_id: str, course_id: UUID) -> ResetRequest | None:
        stmt = select(ResetRequestRow).where(
            ResetRequestRow.user_id == user_id,
            ResetRequestRow.course_id == course_id,
            ResetRequestRow.status == "PENDING",
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_request(row)

    async def set_status(
        self, request_id: UUID, status: ResetStatus, resolved_at: int
    ) -> ResetRequest:
        stmt = (
            update(ResetRequestRow)
            .where(ResetRequestRow.id == request_id)
            .values(status=status, resolved_at=resolved_at)
            .returning(ResetRequestRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            raise KeyError("reset request not found")
        return _row_to_request(row)

    async def list(
        self,
        *,
        status: ResetStatus | None = None,
        course_ids: Iterable[UUID] | None = None,
    ) -> list[ResetRequest]:
        stmt = select(ResetRequestRow).order_by(ResetRequestRow.requested_at)
        if status is not None:
            stmt = stmt.where(ResetRequestRow.status == status)
        if course_ids is not None:
            stmt = stmt.where(ResetRequestRow.course_id.in_(list(course_ids)))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_request(r) for r in rows]


def _row_to_request(row: ResetRequestRow) -> ResetRequest:
    return ResetRequest(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        requested_at=row.requested_at,
        status=row.status,  # type: ignore[arg-type]
        resolved_at=row.resolved_at,
    )
