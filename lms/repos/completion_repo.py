from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol
from uuid import UUID

from lms.models.completion import ModuleCompletion, UserCompletedCourse


class CompletionRepo(Protocol):
    async def get(self, user_id: str, course_id: UUID) -> UserCompletedCourse | None: ...
    async def upsert(self, record: UserCompletedCourse) -> None: ...
    async def delete(self, user_id: str, course_id: UUID) -> bool: ...
    async def list_by_user(self, user_id: str) -> list[UserCompletedCourse]: ...
    async def list_by_courses(
        self, course_ids: Iterable[UUID]
    ) -> list[UserCompletedCourse]: ...
    async def mark_module(self, record: ModuleCompletion) -> None: ...
    async def unmark_module(self, user_id: str, module_id: UUID) -> bool: ...
    async def list_modules(
        self, user_id: str, module_ids: Iterable[UUID]
    ) -> list[ModuleCompletion]: ...
    async def clear_modules(self, user_id: str, module_ids: Iterable[UUID]) -> int: ...


class InMemoryCompletionRepo:
    def __init__(self) -> None:
        self._by_key: dict[tuple[str, UUID], UserCompletedCourse] = {}
        self._modules: dict[tuple[str, UUID], ModuleCompletion] = {}

    async def get(self, user_id: str, course_id: UUID) -> UserCompletedCourse | None:
        return self._by_key.get((user_id, course_id))

    async def upsert(self, record: UserCompletedCourse) -> None:
        self._by_key[(record.user_id, record.course_id)] = record

    async def delete(self, user_id: str, course_id: UUID) -> bool:
        return self._by_key.pop((user_id, course_id), None) is not None

    async def list_by_user(self, user_id: str) -> list[UserCompletedCourse]:
        rows = [r for r in self._by_key.values() if r.user_id == user_id]
        return sorted(rows, key=lambda r: r.completion_date)

    async def list_by_courses(
        self, course_ids: Iterable[UUID]
    ) -> list[UserCompletedCourse]:
        wanted = set(course_ids)
        return [r for r in self._by_key.values() if r.course_id in wanted]

    async def mark_module(self, record: ModuleCompletion) -> None:
        # First tick wins; marking again keeps the original timestamp.
        self._modules.setdefault((record.user_id, record.module_id), record)

    async def unmark_module(self, user_id: str, module_id: UUID) -> bool:
        return self._modules.pop((user_id, module_id), None) is not None

    async def list_modules(
        self, user_id: str, module_ids: Iterable[UUID]
    ) -> list[ModuleCompletion]:
        wanted = set(module_ids)
        return [
            r
            for (uid, mid), r in self._modules.items()
            if uid == user_id and mid in wanted
        ]

    async def clear_modules(self, user_id: str, module_ids: Iterable[UUID]) -> int:
        cleared = 0
        for module_id in set(module_ids):
            if self._modules.pop((user_id, module_id), None) is not None:
                cleared += 1
        return cleared

    def snapshot(self) -> tuple:
        return dict(self._by_key), dict(self._modules)

    def restore(self, state: tuple) -> None:
        courses, modules = state
        self._by_key = dict(courses)
        self._modules = dict(modules)

    def clear(self) -> None:
        self._by_key.clear()
        self._modules.clear()
