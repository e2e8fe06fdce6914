from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, status

from qualityedu.api.dependencies import AnyRole, StoreDep
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import (
    LessonIn,
    LessonOut,
    LessonStatsOut,
    LessonUpdateIn,
    ReorderIn,
)
from qualityedu.services import lesson_service

router = APIRouter(prefix="/api/lessons", tags=["lessons"])


def _lessons(lessons: list) -> list[LessonOut]:
    return [LessonOut.model_validate(x) for x in lessons]


# --- public -------------------------------------------------------------------


@router.get("/public/all")
async def public_lessons(store: StoreDep) -> ApiResponse:
    return ok(_lessons(await lesson_service.list_published(store)))


@router.get("/public/{lesson_id}")
async def public_lesson(lesson_id: UUID, store: StoreDep) -> ApiResponse:
    return ok(LessonOut.model_validate(await lesson_service.view_published(store, lesson_id)))


# --- teacher-scoped -----------------------------------------------------------


@router.post("/modules/{module_id}", status_code=status.HTTP_201_CREATED)
async def create_lesson(
    module_id: UUID, payload: LessonIn, identity: AnyRole, store: StoreDep
) -> ApiResponse:
    lesson = await lesson_service.create_lesson(
        store, identity, module_id, payload.model_dump(exclude_none=True)
    )
    return ok(LessonOut.model_validate(lesson), "Lesson created")


@router.get("/modules/{module_id}")
async def module_lessons(module_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    return ok(_lessons(await lesson_service.list_module_lessons(store, identity, module_id)))


@router.put("/modules/{module_id}/reorder")
async def reorder_lessons(
    module_id: UUID, payload: ReorderIn, identity: AnyRole, store: StoreDep
) -> ApiResponse:
    lessons = await lesson_service.reorder_lessons(store, identity, module_id, payload.ids)
    return ok(_lessons(lessons), "Lessons reordered")


@router.get("/search")
async def search_lessons(
    course_id: UUID, identity: AnyRole, store: StoreDep, term: str = ""
) -> ApiResponse:
    return ok(_lessons(await lesson_service.search_lessons(store, identity, course_id, term)))


@router.get("/stats")
async def lesson_stats(identity: AnyRole, store: StoreDep) -> ApiResponse:
    stats = await lesson_service.lesson_stats(store, identity)
    return ok(LessonStatsOut.model_validate(stats))


@router.get("/{lesson_id}")
async def get_lesson(lesson_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    lesson = await lesson_service.get_owned_lesson(store, identity, lesson_id)
    return ok(LessonOut.model_validate(lesson))


@router.put("/{lesson_id}")
async def update_lesson(
    lesson_id: UUID, payload: LessonUpdateIn, identity: AnyRole, store: StoreDep
) -> ApiResponse:
    lesson = await lesson_service.update_lesson(
        store, identity, lesson_id, payload.model_dump(exclude_none=True)
    )
    return ok(LessonOut.model_validate(lesson), "Lesson updated")


@router.delete("/{lesson_id}")
async def delete_lesson(lesson_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    await lesson_service.delete_lesson(store, identity, lesson_id)
    return ok(message="Lesson deleted")


@router.put("/{lesson_id}/publish")
async def publish_lesson(lesson_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    lesson = await lesson_service.set_status(store, identity, lesson_id, "PUBLISHED")
    return ok(LessonOut.model_validate(lesson), "Lesson published")


@router.put("/{lesson_id}/unpublish")
async def unpublish_lesson(lesson_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    lesson = await lesson_service.set_status(store, identity, lesson_id, "DRAFT")
    return ok(LessonOut.model_validate(lesson), "Lesson unpublished")


@router.put("/{lesson_id}/submit")
async def submit_lesson(lesson_id: UUID, identity: AnyRole, store: StoreDep) -> ApiResponse:
    lesson = await lesson_service.set_status(store, identity, lesson_id, "UNDER_REVIEW")
    return ok(LessonOut.model_validate(lesson), "Lesson submitted for review")
