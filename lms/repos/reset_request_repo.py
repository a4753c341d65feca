from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol
from uuid import UUID

from lms.models.completion import ResetRequest, ResetStatus


class PendingResetExists(Exception):
    """The user already has a PENDING request for the course."""


class ResetRequestRepo(Protocol):
    async def add(self, request: ResetRequest) -> None: ...
    async def get(self, request_id: UUID) -> ResetRequest | None: ...
    async def get_pending(self, user_id: str, course_id: UUID) -> ResetRequest | None: ...
    async def set_status(
        self, request_id: UUID, status: ResetStatus, resolved_at: int
    ) -> ResetRequest: ...
    async def list(
        self,
        *,
        status: ResetStatus | None = None,
        course_ids: Iterable[UUID] | None = None,
    ) -> list[ResetRequest]: ...


class InMemoryResetRequestRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, ResetRequest] = {}

    async def add(self, request: ResetRequest) -> None:
        # Mirrors the partial unique index on the PostgreSQL table.
        if request.status == "PENDING" and await self.get_pending(
            request.user_id, request.course_id
        ):
            raise PendingResetExists(f"{request.user_id}:{request.course_id}")
        self._by_id[request.id] = request

    async def get(self, request_id: UUID) -> ResetRequest | None:
        return self._by_id.get(request_id)

    async def get_pending(self, user_id: str, course_id: UUID) -> ResetRequest | None:
        for r in self._by_id.values():
            if r.user_id == user_id and r.course_id == course_id and r.status == "PENDING":
                return r
        return None

    async def set_status(
        self, request_id: UUID, status: ResetStatus, resolved_at: int
    ) -> ResetRequest:
        request = self._by_id.get(request_id)
        if request is None:
            raise KeyError("reset request not found")
        updated = replace(request, status=status, resolved_at=resolved_at)
        self._by_id[request_id] = updated
        return updated

    async def list(
        self,
        *,
        status: ResetStatus | None = None,
        course_ids: Iterable[UUID] | None = None,
    ) -> list[ResetRequest]:
        wanted = set(course_ids) if course_ids is not None else None
        rows = [
            r
            for r in self._by_id.values()
            if (status is None or r.status == status)
            and (wanted is None or r.course_id in wanted)
        ]
        return sorted(rows, key=lambda r: r.requested_at)

    def snapshot(self) -> dict[UUID, ResetRequest]:
        return dict(self._by_id)

    def restore(self, state: dict[UUID, ResetRequest]) -> None:
        self._by_id = dict(state)

    def clear(self) -> None:
        self._by_id.clear()
