from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from uuid import UUID

from qualityedu.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from qualityedu.models.course import CONTENT_STATUSES, Lesson, Quiz, youtube_thumbnail
from qualityedu.models.identity import Identity
from qualityedu.repos.store import Store
from qualityedu.services import module_service
from qualityedu.services.access import (
    check_owner_or_supervisor,
    model_fields,
    now_ts,
    principal_uuid,
)
from qualityedu.services.notifier import Notifier

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "video_url",
        "duration",
        "order",
        "status",
        "quizzes",
        "cover_image",
        "transcript",
        "tags",
        "difficulty",
        "language",
    }
)


@dataclass(frozen=True, slots=True)
class LessonStats:
    total_lessons: int
    published_lessons: int
    draft_lessons: int
    total_views: int
    average_rating: float
    total_quizzes: int
    most_popular: Lesson | None
    recent: tuple[Lesson, ...]


def _prepare(fields: dict) -> dict:
    fields = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
    status = fields.get("status")
    if status is not None and status not in CONTENT_STATUSES:
        raise ValidationFailed(
            f"status must be one of {'|'.join(CONTENT_STATUSES)} (got {status!r})"
        )
    if "quizzes" in fields:
        fields["quizzes"] = [Quiz.from_dict(q) for q in fields["quizzes"] or ()]
    fields = model_fields(fields)
    if "video_url" in fields:
        fields["video_thumbnail"] = youtube_thumbnail(fields["video_url"])
    return fields


async def _check_unique(
    store: Store,
    module_id: UUID,
    *,
    title: str | None,
    order: int | None,
    exclude: UUID | None = None,
) -> None:
    for other in await store.lessons.list_by_module(module_id):
        if other.id == exclude:
            continue
        if title is not None and other.title.strip().lower() == title.strip().lower():
            raise Conflict("A lesson with this title already exists in this module")
        if order is not None and other.order == order:
            raise Conflict(f"A lesson with order {order} already exists")


async def get_owned_lesson(store: Store, identity: Identity, lesson_id: UUID) -> Lesson:
    lesson = await store.lessons.get(lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")
    check_owner_or_supervisor(identity, lesson.teacher_id, noun="lessons")
    return lesson


async def create_lesson(
    store: Store, identity: Identity, module_id: UUID, fields: dict
) -> Lesson:
    """Create a lesson in a module whose course the caller owns."""
    if not identity.has_role("TEACHER"):
        raise Forbidden("Only teachers can create lessons")
    module = await module_service.get_owned_module(store, identity, module_id)
    course = await store.courses.get(module.course_id)
    if course is None:
        raise NotFound("Course not found")
    if not identity.owns(course.teacher_id):
        raise Forbidden("You can only manage your own lessons")

    fields = _prepare(fields)
    title = fields.pop("title", "").strip()
    if not title:
        raise ValidationFailed("title is required")
    order = fields.pop("order", None)
    if order is None:
        siblings = await store.lessons.list_by_module(module.id)
        order = max((x.order for x in siblings), default=0) + 1
    await _check_unique(store, module.id, title=title, order=order)

    lesson = Lesson.new(
        module_id=module.id,
        course_id=course.id,
        teacher_id=principal_uuid(identity),
        title=title,
        order=order,
        created_at=now_ts(),
        **fields,
    )
    await store.lessons.add(lesson)
    await module_service.recount_lessons(store, module.id)
    logger.info("Lesson created lesson_id=%s module_id=%s order=%d", lesson.id, module.id, order)
    return lesson


async def list_published(store: Store) -> list[Lesson]:
    return await store.lessons.list_by_status("PUBLISHED")


async def view_published(store: Store, lesson_id: UUID) -> Lesson:
    """Public lesson view; counts the view."""
    lesson = await store.lessons.get(lesson_id)
    if lesson is None or not lesson.is_published:
        raise NotFound("Lesson not found")
    viewed = replace(lesson, views=lesson.views + 1)
    await store.lessons.save(viewed)
    return viewed


async def list_module_lessons(store: Store, identity: Identity, module_id: UUID) -> list[Lesson]:
    await module_service.get_owned_module(store, identity, module_id)
    return await store.lessons.list_by_module(module_id)


async def update_lesson(
    store: Store, identity: Identity, lesson_id: UUID, changes: dict
) -> Lesson:
    lesson = await get_owned_lesson(store, identity, lesson_id)
    changes = _prepare(changes)
    if "title" in changes:
        changes["title"] = changes["title"].strip()
        if not changes["title"]:
            raise ValidationFailed("title must not be empty")

    title = changes.get("title")
    order = changes.get("order")
    await _check_unique(
        store,
        lesson.module_id,
        title=title if title and title.lower() != lesson.title.lower() else None,
        order=order if order is not None and order != lesson.order else None,
        exclude=lesson.id,
    )

    updated = replace(lesson, **changes, updated_at=now_ts())
    await store.lessons.save(updated)
    return updated


async def delete_lesson(store: Store, identity: Identity, lesson_id: UUID) -> None:
    lesson = await get_owned_lesson(store, identity, lesson_id)
    await store.lessons.delete(lesson.id)
    await module_service.recount_lessons(store, lesson.module_id)
    logger.info("Lesson deleted lesson_id=%s", lesson.id)


async def search_lessons(
    store: Store, identity: Identity, course_id: UUID, term: str
) -> list[Lesson]:
    from qualityedu.services import course_service

    await course_service.get_owned_course(store, identity, course_id)
    needle = term.strip().lower()
    return [
        x
        for x in await store.lessons.list_by_course(course_id)
        if needle in x.title.lower() or needle in x.description.lower()
    ]


async def lesson_stats(store: Store, identity: Identity) -> LessonStats:
    lessons = await store.lessons.list_by_teacher(principal_uuid(identity))
    rated = [x.average_rating for x in lessons if x.average_rating > 0]
    return LessonStats(
        total_lessons=len(lessons),
        published_lessons=sum(1 for x in lessons if x.status == "PUBLISHED"),
        draft_lessons=sum(1 for x in lessons if x.status == "DRAFT"),
        total_views=sum(x.views for x in lessons),
        average_rating=round(sum(rated) / len(rated), 2) if rated else 0.0,
        total_quizzes=sum(len(x.quizzes) for x in lessons),
        most_popular=max(lessons, key=lambda x: x.views, default=None),
        recent=tuple(sorted(lessons, key=lambda x: x.created_at, reverse=True)[:5]),
    )


async def reorder_lessons(
    store: Store, identity: Identity, module_id: UUID, lesson_ids: list[UUID]
) -> list[Lesson]:
    await module_service.get_owned_module(store, identity, module_id)
    if not lesson_ids:
        raise ValidationFailed("lesson_ids must not be empty")

    by_id = {x.id: x for x in await store.lessons.list_by_module(module_id)}
    unknown = [str(lid) for lid in lesson_ids if lid not in by_id]
    if unknown:
        raise ValidationFailed(f"Lessons not in this module: {', '.join(unknown)}")
    if len(set(lesson_ids)) != len(lesson_ids) or set(lesson_ids) != set(by_id):
        raise ValidationFailed("lesson_ids must list every lesson of the module exactly once")

    now = now_ts()
    for position, lesson_id in enumerate(lesson_ids):
        lesson = by_id[lesson_id]
        if lesson.order != position + 1:
            await store.lessons.save(replace(lesson, order=position + 1, updated_at=now))
    return await store.lessons.list_by_module(module_id)


async def set_status(
    store: Store, identity: Identity, lesson_id: UUID, status: str
) -> Lesson:
    """Teacher-side status moves: publish, unpublish (DRAFT), submit (UNDER_REVIEW)."""
    lesson = await get_owned_lesson(store, identity, lesson_id)
    if status not in ("PUBLISHED", "DRAFT", "UNDER_REVIEW"):
        raise ValidationFailed(f"cannot move a lesson to {status!r}")
    updated = replace(lesson, status=status, updated_at=now_ts())  # type: ignore[arg-type]
    await store.lessons.save(updated)
    logger.info("Lesson status lesson_id=%s %s -> %s", lesson.id, lesson.status, status)
    return updated


async def pending_reviews(store: Store) -> list[Lesson]:
    return await store.lessons.list_by_status("UNDER_REVIEW")


async def review_lesson(
    store: Store,
    identity: Identity,
    notifier: Notifier,
    lesson_id: UUID,
    *,
    approve: bool,
    reason: str | None = None,
) -> Lesson:
    """Supervisor decision: approve publishes, reject records the reason."""
    if not identity.has_role("SUPERVISOR"):
        raise Forbidden("Only supervisors can review lessons")
    lesson = await store.lessons.get(lesson_id)
    if lesson is None:
        raise NotFound("Lesson not found")
    if not approve and not (reason and reason.strip()):
        raise ValidationFailed("A reason is required to reject a lesson")

    updated = replace(
        lesson,
        status="PUBLISHED" if approve else "REJECTED",
        reviewed_by=principal_uuid(identity),
        rejection_reason=None if approve else reason.strip(),  # type: ignore[union-attr]
        updated_at=now_ts(),
    )
    await store.lessons.save(updated)
    logger.info(
        "Lesson reviewed lesson_id=%s decision=%s reviewer=%s",
        lesson.id,
        "approved" if approve else "rejected",
        identity.principal_id,
    )

    teacher = await store.principals.get_by_id(lesson.teacher_id)
    if teacher is not None:
        await notifier.notify(
            "lesson_reviewed",
            teacher.email,
            {
                "name": teacher.display_name,
                "lesson_title": lesson.title,
                "decision": "approved" if approve else "rejected",
                "reason_line": "" if approve else f"\n\nReason: {updated.rejection_reason}",
            },
        )
    return updated


async def published_lesson_count(store: Store, course_id: UUID) -> int:
    return sum(1 for x in await store.lessons.list_by_course(course_id) if x.is_published)
