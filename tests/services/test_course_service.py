from __future__ import annotations

import asyncio
from uuid import uuid4

from lms.services import course_service
from tests.conftest import ORG_A, ORG_B, create_test_course, new_uow


def test_add_course_trims_and_validates_title() -> None:
    ok = asyncio.run(course_service.add_course(new_uow(), "  HACCP Basics  ", org_id=ORG_A))
    assert ok.success
    assert ok.data.title == "HACCP Basics"
    assert ok.data.org_id == ORG_A

    short = asyncio.run(course_service.add_course(new_uow(), " ab "))
    assert short.kind == "validation"
    assert short.errors == ("Title must be at least 3 characters long.",)


def test_list_courses_is_tenant_scoped() -> None:
    mine = create_test_course("Mine", org_id=ORG_A)
    theirs = create_test_course("Theirs", org_id=ORG_B)

    scoped = asyncio.run(course_service.list_courses(new_uow(), org_id=ORG_A)).data
    assert [c.id for c in scoped] == [mine.id]

    everything = asyncio.run(course_service.list_courses(new_uow())).data
    assert {c.id for c in everything} == {mine.id, theirs.id}


def test_learning_path_keeps_course_order() -> None:
    a = create_test_course("Course A")
    b = create_test_course("Course B")
    result = asyncio.run(
        course_service.add_learning_path(new_uow(), "Path", [b.id, a.id], org_id=ORG_A)
    )
    assert result.success
    assert result.data.course_ids == (b.id, a.id)
    listed = asyncio.run(course_service.list_learning_paths(new_uow(), org_id=ORG_A)).data
    assert [p.id for p in listed] == [result.data.id]


def test_learning_path_validation() -> None:
    a = create_test_course("Course A")
    result = asyncio.run(
        course_service.add_learning_path(new_uow(), "P", [a.id, a.id])
    )
    assert result.kind == "validation"
    assert "A course can appear only once in a learning path." in result.errors
    assert "Title must be at least 3 characters long." in result.errors

    empty = asyncio.run(course_service.add_learning_path(new_uow(), "Empty path", []))
    assert "A learning path needs at least one course." in empty.errors


def test_learning_path_rejects_unknown_or_foreign_courses() -> None:
    foreign = create_test_course("Foreign", org_id=ORG_B)
    for course_id in (uuid4(), foreign.id):
        result = asyncio.run(
            course_service.add_learning_path(new_uow(), "Path", [course_id], org_id=ORG_A)
        )
        assert result.kind == "referential"
    assert asyncio.run(course_service.list_learning_paths(new_uow())).data == []


def test_modules_are_appended_in_order() -> None:
    course = create_test_course()
    first = asyncio.run(course_service.add_module(new_uow(), course.id, " Intro "))
    second = asyncio.run(course_service.add_module(new_uow(), course.id, "Storage"))
    assert first.data.title == "Intro"
    assert (first.data.position, second.data.position) == (0, 1)

    listed = asyncio.run(course_service.list_modules(new_uow(), course.id)).data
    assert [m.title for m in listed] == ["Intro", "Storage"]


def test_module_needs_title_and_visible_course() -> None:
    course = create_test_course(org_id=ORG_B)
    blank = asyncio.run(course_service.add_module(new_uow(), course.id, "  "))
    assert blank.kind == "validation"
    assert blank.errors == ("Module title is required.",)

    foreign = asyncio.run(
        course_service.add_module(new_uow(), course.id, "Intro", org_id=ORG_A)
    )
    assert foreign.kind == "not_found"
    assert asyncio.run(
        course_service.list_modules(new_uow(), uuid4())
    ).kind == "not_found"
