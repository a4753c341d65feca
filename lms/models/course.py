from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    title: str
    org_id: UUID | None = None
    has_certificate: bool = False

    @staticmethod
    def new(
        *, title: str, org_id: UUID | None = None, has_certificate: bool = False
    ) -> Course:
        return Course(
            id=uuid4(), title=title, org_id=org_id, has_certificate=has_certificate
        )


@dataclass(frozen=True, slots=True)
class LearningPath:
    id: UUID
    title: str
    course_ids: tuple[UUID, ...]  # ordered
    org_id: UUID | None = None
    has_certificate: bool = False

    @staticmethod
    def new(
        *,
        title: str,
        course_ids: tuple[UUID, ...],
        org_id: UUID | None = None,
        has_certificate: bool = False,
    ) -> LearningPath:
        return LearningPath(
            id=uuid4(),
            title=title,
            course_ids=tuple(course_ids),
            org_id=org_id,
            has_certificate=has_certificate,
        )


@dataclass(frozen=True, slots=True)
class CourseModule:
    id: UUID
    course_id: UUID
    position: int
    title: str

    @staticmethod
    def new(*, course_id: UUID, position: int, title: str) -> CourseModule:
        return CourseModule(
            id=uuid4(), course_id=course_id, position=position, title=title
        )
