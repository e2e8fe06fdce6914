from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from qualityedu.core.errors import Forbidden, NotFound, ValidationFailed
from qualityedu.models.course import COURSE_STATUSES, Course, CourseModule, Lesson
from qualityedu.models.identity import Identity
from qualityedu.repos.store import Store
from qualityedu.services.access import (
    check_owner_or_supervisor,
    model_fields,
    now_ts,
    principal_uuid,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "category",
        "level",
        "description",
        "instructor",
        "instructor_title",
        "image",
        "price",
        "estimated_duration",
        "prerequisites",
        "learning_objectives",
        "status",
    }
)


@dataclass(frozen=True, slots=True)
class CourseOutline:
    course: Course
    modules: tuple[tuple[CourseModule, tuple[Lesson, ...]], ...]


def _validate_status(status: str | None) -> None:
    if status is not None and status not in COURSE_STATUSES:
        raise ValidationFailed(f"status must be draft|published (got {status!r})")


async def get_course(store: Store, course_id: UUID) -> Course:
    course = await store.courses.get(course_id)
    if course is None:
        raise NotFound("Course not found")
    return course


async def get_owned_course(store: Store, identity: Identity, course_id: UUID) -> Course:
    course = await get_course(store, course_id)
    check_owner_or_supervisor(identity, course.teacher_id, noun="courses")
    return course


async def create_course(store: Store, identity: Identity, fields: dict) -> Course:
    if not identity.has_role("TEACHER"):
        raise Forbidden("Only teachers can create courses")
    fields = {k: v for k, v in model_fields(fields).items() if k in UPDATABLE_FIELDS}
    _validate_status(fields.get("status"))
    teacher_id = principal_uuid(identity)

    course = Course.new(teacher_id=teacher_id, created_at=now_ts(), **fields)
    await store.courses.add(course)
    logger.info("Course created course_id=%s teacher_id=%s", course.id, teacher_id)
    return course


async def list_courses(store: Store) -> list[Course]:
    return await store.courses.list_all()


async def list_teacher_courses(store: Store, teacher_id: UUID) -> list[Course]:
    return await store.courses.list_by_teacher(teacher_id)


async def list_published(store: Store) -> list[Course]:
    return await store.courses.list_by_status("published")


def _matches(value: str, wanted: str | None) -> bool:
    if not wanted or wanted.lower() == "all":
        return True
    return value.lower() == wanted.lower()


async def search_published(
    store: Store,
    term: str | None = None,
    category: str | None = None,
    level: str | None = None,
) -> list[Course]:
    """Published courses filtered by free text, category and level.

    "all" or an empty value disables a filter.  The term matches title or
    description case-insensitively.
    """
    needle = (term or "").strip().lower()
    results = []
    for course in await list_published(store):
        if needle and needle not in course.title.lower() and needle not in course.description.lower():
            continue
        if not _matches(course.category, category) or not _matches(course.level, level):
            continue
        results.append(course)
    return results


async def update_course(
    store: Store, identity: Identity, course_id: UUID, changes: dict
) -> Course:
    course = await get_owned_course(store, identity, course_id)
    changes = {k: v for k, v in model_fields(changes).items() if k in UPDATABLE_FIELDS}
    _validate_status(changes.get("status"))

    updated = replace(course, **changes, updated_at=now_ts())
    await store.courses.save(updated)
    logger.info("Course updated course_id=%s fields=%s", course_id, sorted(changes))
    return updated


async def set_course_status(
    store: Store, identity: Identity, course_id: UUID, status: str
) -> Course:
    return await update_course(store, identity, course_id, {"status": status})


async def delete_course(store: Store, identity: Identity, course_id: UUID) -> None:
    """Delete a course with its modules, lessons and enrollments."""
    course = await get_owned_course(store, identity, course_id)

    modules = await store.modules.list_by_course(course.id)
    lesson_count = 0
    for module in modules:
        for lesson in await store.lessons.list_by_module(module.id):
            await store.lessons.delete(lesson.id)
            lesson_count += 1
        await store.modules.delete(module.id)
    dropped = await store.enrollments.delete_by_course(course.id)
    await store.courses.delete(course.id)

    logger.info(
        "Course deleted course_id=%s modules=%d lessons=%d enrollments=%d",
        course.id,
        len(modules),
        lesson_count,
        dropped,
    )


async def recount_modules(store: Store, course_id: UUID) -> None:
    course = await store.courses.get(course_id)
    if course is None:
        return
    count = len(await store.modules.list_by_course(course_id))
    if count != course.modules:
        await store.courses.save(replace(course, modules=count))


async def recount_students(store: Store, course_id: UUID) -> None:
    course = await store.courses.get(course_id)
    if course is None:
        return
    active = [
        e for e in await store.enrollments.list_by_course(course_id) if e.status != "dropped"
    ]
    if len(active) != course.students:
        await store.courses.save(replace(course, students=len(active)))


def _privileged(identity: Identity, course: Course) -> bool:
    return identity.has_role("SUPERVISOR") or (
        identity.has_role("TEACHER") and identity.owns(course.teacher_id)
    )


async def get_visible_course(store: Store, identity: Identity, course_id: UUID) -> Course:
    """Drafts are visible to their owner and to supervisors only."""
    course = await get_course(store, course_id)
    if not course.is_published and not _privileged(identity, course):
        raise NotFound("Course not found")
    return course


async def course_outline(store: Store, identity: Identity, course_id: UUID) -> CourseOutline:
    """Modules with their lessons.

    Owners and supervisors see every lesson; everyone else sees published
    lessons of a published course only.
    """
    course = await get_visible_course(store, identity, course_id)
    privileged = _privileged(identity, course)

    outline = []
    for module in await store.modules.list_by_course(course.id):
        lessons = await store.lessons.list_by_module(module.id)
        if not privileged:
            lessons = [x for x in lessons if x.is_published]
        outline.append((module, tuple(lessons)))
    return CourseOutline(course=course, modules=tuple(outline))
