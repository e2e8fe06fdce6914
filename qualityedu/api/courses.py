"""Course endpoints.

``/public/*`` needs no token.  Everything else needs some identity; who
may change what is decided by the course service (owner or supervisor).
Public routes are declared first so ``/public/all`` is never parsed as
a course id.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status

from qualityedu.api.dependencies import AnyRole, StoreDep
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import (
    CourseIn,
    CourseOut,
    CourseOutlineOut,
    CourseUpdateIn,
    LessonOut,
    ModuleOut,
    ModuleOutline,
)
from qualityedu.services import course_service

router = APIRouter(prefix="/api/courses", tags=["courses"])


def _courses(courses: list) -> list[CourseOut]:
    return [CourseOut.model_validate(c) for c in courses]


@router.get("/public/all")
async def public_courses(store: StoreDep) -> ApiResponse:
    return ok(_courses(await course_service.list_published(store)))


@router.get("/public/search")
async def public_search(
    store: StoreDep,
    term: str | None = None,
    category: str | None = None,
    level: str | None = None,
) -> ApiResponse:
    return ok(_courses(await course_service.search_published(store, term, category, level)))


@router.get("")
async def list_courses(_identity: AnyRole, store: StoreDep) -> ApiResponse:
    return ok(_courses(await course_service.list_courses(store)))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(payload: CourseIn, identity: AnyRole, store: StoreDep) -> ApiResponse:
    course = await course_service.create_course(
        store, identity, payload.model_dump(exclude_none=True)
    )
    return ok(CourseOut.model_validate(course), "Course created")


@router.get("/teacher/{teacher_id}")
async def teacher_courses(teacher_id: UUID, _identity: AnyRole, store: StoreDep) -> ApiResponse:
    return ok(_courses(await course_service.list_teacher_courses(store, teacher_id)))


@router.get("/{course_id}")
async def get_course(course_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    course = await course_service.get_visible_course(store, identity, course_id)
    return ok(CourseOut.model_validate(course))


@router.get("/{course_id}/content")
async def course_content(course_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    outline = await course_service.course_outline(store, identity, course_id)
    return ok(
        CourseOutlineOut(
            course=CourseOut.model_validate(outline.course),
            modules=[
                ModuleOutline(
                    module=ModuleOut.model_validate(module),
                    lessons=[LessonOut.model_validate(x) for x in lessons],
                )
                for module, lessons in outline.modules
            ],
        )
    )


@router.put("/{course_id}")
async def update_course(
    course_id: UUID, payload: CourseUpdateIn, identity: AnyRole, store: StoreDep
) -> ApiResponse:
    course = await course_service.update_course(
        store, identity, course_id, payload.model_dump(exclude_none=True)
    )
    return ok(CourseOut.model_validate(course), "Course updated")


@router.put("/{course_id}/publish")
async def publish_course(course_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    course = await course_service.set_course_status(store, identity, course_id, "published")
    return ok(CourseOut.model_validate(course), "Course published")


@router.put("/{course_id}/unpublish")
async def unpublish_course(course_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    course = await course_service.set_course_status(store, identity, course_id, "draft")
    return ok(CourseOut.model_validate(course), "Course unpublished")


@router.delete("/{course_id}")
async def delete_course(course_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    await course_service.delete_course(store, identity, course_id)
    return ok(message="Course deleted")
