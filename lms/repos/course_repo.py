from __future__ import annotations

from typing import Protocol
from uuid import UUID

from lms.models.course import Course, CourseModule, LearningPath


class CourseRepo(Protocol):
    async def get(self, course_id: UUID) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def list(self, org_id: UUID | None = None) -> list[Course]: ...
    async def get_learning_path(self, path_id: UUID) -> LearningPath | None: ...
    async def add_learning_path(self, path: LearningPath) -> None: ...
    async def list_learning_paths(
        self, org_id: UUID | None = None
    ) -> list[LearningPath]: ...
    async def get_module(self, module_id: UUID) -> CourseModule | None: ...
    async def add_module(self, module: CourseModule) -> None: ...
    async def list_modules(self, course_id: UUID) -> list[CourseModule]: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._courses: dict[UUID, Course] = {}
        self._paths: dict[UUID, LearningPath] = {}
        self._modules: dict[UUID, CourseModule] = {}

    async def get(self, course_id: UUID) -> Course | None:
        return self._courses.get(course_id)

    async def add(self, course: Course) -> None:
        if course.id in self._courses:
            raise ValueError("course already exists")
        self._courses[course.id] = course

    async def list(self, org_id: UUID | None = None) -> list[Course]:
        return [c for c in self._courses.values() if org_id in (None, c.org_id)]

    async def get_learning_path(self, path_id: UUID) -> LearningPath | None:
        return self._paths.get(path_id)

    async def add_learning_path(self, path: LearningPath) -> None:
        if path.id in self._paths:
            raise ValueError("learning path already exists")
        self._paths[path.id] = path

    async def list_learning_paths(
        self, org_id: UUID | None = None
    ) -> list[LearningPath]:
        return [p for p in self._paths.values() if org_id in (None, p.org_id)]

    async def get_module(self, module_id: UUID) -> CourseModule | None:
        return self._modules.get(module_id)

    async def add_module(self, module: CourseModule) -> None:
        if module.id in self._modules:
            raise ValueError("module already exists")
        self._modules[module.id] = module

    async def list_modules(self, course_id: UUID) -> list[CourseModule]:
        rows = [m for m in self._modules.values() if m.course_id == course_id]
        return sorted(rows, key=lambda m: m.position)

    def snapshot(self) -> tuple:
        return dict(self._courses), dict(self._paths), dict(self._modules)

    def restore(self, state: tuple) -> None:
        courses, paths, modules = state
        self._courses = dict(courses)
        self._paths = dict(paths)
        self._modules = dict(modules)

    def clear(self) -> None:
        self._courses.clear()
        self._paths.clear()
        self._modules.clear()
