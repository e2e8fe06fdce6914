"""Course, module and lesson services: ownership, ordering, counters."""

from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest

from qualityedu.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from qualityedu.repos.store import memory_store as store
from qualityedu.services import course_service, lesson_service, module_service
from tests.conftest import add_principal, identity_for


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, dict]] = []

    async def notify(self, template: str, to: str, params: dict[str, str]) -> None:
        self.sent.append((template, to, params))


async def _teacher_course():
    teacher = await add_principal("TEACHER", status="ACTIVE", first_name="Tess")
    me = identity_for(teacher)
    course = await course_service.create_course(store, me, {"title": "French A1"})
    return teacher, me, course


# ---- courses ----


def test_create_course_requires_teacher() -> None:
    async def scenario() -> None:
        student = identity_for(await add_principal("STUDENT"))
        with pytest.raises(Forbidden):
            await course_service.create_course(store, student, {"title": "x"})

    asyncio.run(scenario())


def test_course_defaults_to_draft_and_converts_lists() -> None:
    async def scenario() -> None:
        teacher = identity_for(await add_principal("TEACHER"))
        course = await course_service.create_course(
            store, teacher, {"title": "German", "prerequisites": ["none"], "teacher_id": str(uuid4())}
        )
        assert course.status == "draft"
        assert course.prerequisites == ("none",)
        assert str(course.teacher_id) == teacher.principal_id

    asyncio.run(scenario())


def test_only_owner_or_supervisor_updates_course() -> None:
    async def scenario() -> None:
        _, _, course = await _teacher_course()
        other = identity_for(await add_principal("TEACHER"))
        with pytest.raises(Forbidden):
            await course_service.update_course(store, other, course.id, {"title": "Mine now"})

        supervisor = identity_for(await add_principal("SUPERVISOR"))
        updated = await course_service.update_course(store, supervisor, course.id, {"level": "A1"})
        assert updated.level == "A1"

    asyncio.run(scenario())


def test_invalid_course_status_rejected() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        with pytest.raises(ValidationFailed):
            await course_service.set_course_status(store, me, course.id, "archived")

    asyncio.run(scenario())


def test_draft_course_hidden_from_students() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        student = identity_for(await add_principal("STUDENT"))
        with pytest.raises(NotFound):
            await course_service.get_visible_course(store, student, course.id)
        assert (await course_service.get_visible_course(store, me, course.id)).id == course.id

    asyncio.run(scenario())


def test_search_published_filters() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        await course_service.update_course(
            store,
            me,
            course.id,
            {"status": "published", "category": "Languages", "level": "Beginner",
             "description": "Learn everyday French"},
        )
        await course_service.create_course(store, me, {"title": "French B2 (draft)"})

        assert len(await course_service.search_published(store, "french")) == 1
        assert len(await course_service.search_published(store, "EVERYDAY")) == 1
        assert len(await course_service.search_published(store, None, "all", "beginner")) == 1
        assert await course_service.search_published(store, None, "Science") == []

    asyncio.run(scenario())


def test_delete_course_cascades() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "Basics"})
        await lesson_service.create_lesson(store, me, module.id, {"title": "Hello"})

        await course_service.delete_course(store, me, course.id)

        assert await store.courses.get(course.id) is None
        assert await store.modules.list_by_course(course.id) == []
        assert await store.lessons.list_by_course(course.id) == []

    asyncio.run(scenario())


# ---- modules ----


def test_module_order_defaults_and_conflicts() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        first = await module_service.create_module(store, me, course.id, {"title": "One"})
        second = await module_service.create_module(store, me, course.id, {"title": "Two"})
        assert (first.order, second.order) == (1, 2)
        assert (await store.courses.get(course.id)).modules == 2  # type: ignore[union-attr]

        with pytest.raises(Conflict):
            await module_service.create_module(store, me, course.id, {"title": "Dup", "order": 2})
        assert await module_service.next_order(store, course.id) == 3

    asyncio.run(scenario())


def test_supervisor_created_module_belongs_to_course_teacher() -> None:
    async def scenario() -> None:
        teacher, _, course = await _teacher_course()
        supervisor = identity_for(await add_principal("SUPERVISOR"))
        module = await module_service.create_module(store, supervisor, course.id, {"title": "S"})
        assert module.teacher_id == teacher.id

    asyncio.run(scenario())


def test_reorder_modules() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        a = await module_service.create_module(store, me, course.id, {"title": "A"})
        b = await module_service.create_module(store, me, course.id, {"title": "B"})
        reordered = await module_service.reorder_modules(store, me, course.id, [b.id, a.id])
        assert {m.id: m.order for m in reordered} == {b.id: 1, a.id: 2}

        with pytest.raises(ValidationFailed):
            await module_service.reorder_modules(store, me, course.id, [uuid4()])

    asyncio.run(scenario())


@pytest.mark.parametrize("ids", ["partial", "duplicated"])
def test_reorder_modules_needs_every_module_once(ids: str) -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        one = await module_service.create_module(store, me, course.id, {"title": "one"})
        two = await module_service.create_module(store, me, course.id, {"title": "two"})
        module_ids = [two.id] if ids == "partial" else [two.id, two.id, one.id]

        with pytest.raises(ValidationFailed, match="exactly once"):
            await module_service.reorder_modules(store, me, course.id, module_ids)

        modules = await store.modules.list_by_course(course.id)
        assert [(m.title, m.order) for m in modules] == [("one", 1), ("two", 2)]

    asyncio.run(scenario())


@pytest.mark.parametrize("ids", ["partial", "duplicated"])
def test_reorder_lessons_needs_every_lesson_once(ids: str) -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        first = await lesson_service.create_lesson(store, me, module.id, {"title": "first"})
        second = await lesson_service.create_lesson(store, me, module.id, {"title": "second"})
        lesson_ids = [second.id] if ids == "partial" else [second.id, second.id, first.id]

        with pytest.raises(ValidationFailed, match="exactly once"):
            await lesson_service.reorder_lessons(store, me, module.id, lesson_ids)

        reordered = await lesson_service.reorder_lessons(
            store, me, module.id, [second.id, first.id]
        )
        assert [(x.title, x.order) for x in reordered] == [("second", 1), ("first", 2)]

    asyncio.run(scenario())


def test_module_with_lessons_cannot_be_deleted() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        lesson = await lesson_service.create_lesson(store, me, module.id, {"title": "L"})
        with pytest.raises(Conflict):
            await module_service.delete_module(store, me, module.id)

        await lesson_service.delete_lesson(store, me, lesson.id)
        await module_service.delete_module(store, me, module.id)
        assert (await store.courses.get(course.id)).modules == 0  # type: ignore[union-attr]

    asyncio.run(scenario())


# ---- lessons ----


def test_lesson_creation_counts_and_thumbnail() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        lesson = await lesson_service.create_lesson(
            store,
            me,
            module.id,
            {
                "title": "Greetings",
                "video_url": "https://www.youtube.com/watch?v=abc_123",
                "quizzes": [{"question": "Hola?", "options": ["Hi", "Bye"], "correct_answer": 0}],
            },
        )
        assert lesson.order == 1
        assert lesson.status == "DRAFT"
        assert lesson.course_id == course.id
        assert lesson.video_thumbnail == "https://img.youtube.com/vi/abc_123/mqdefault.jpg"
        assert lesson.quizzes[0].options == ("Hi", "Bye")
        assert lesson.quizzes[0].id
        assert (await store.modules.get(module.id)).total_lessons == 1  # type: ignore[union-attr]

    asyncio.run(scenario())


def test_lesson_title_unique_case_insensitive() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        await lesson_service.create_lesson(store, me, module.id, {"title": "Numbers"})
        with pytest.raises(Conflict):
            await lesson_service.create_lesson(store, me, module.id, {"title": "  numbers "})

    asyncio.run(scenario())


def test_supervisor_cannot_create_lessons() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        supervisor = identity_for(await add_principal("SUPERVISOR"))
        with pytest.raises(Forbidden):
            await lesson_service.create_lesson(store, supervisor, module.id, {"title": "X"})

    asyncio.run(scenario())


def test_public_view_counts_and_hides_drafts() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        lesson = await lesson_service.create_lesson(store, me, module.id, {"title": "L"})
        with pytest.raises(NotFound):
            await lesson_service.view_published(store, lesson.id)

        await lesson_service.set_status(store, me, lesson.id, "PUBLISHED")
        viewed = await lesson_service.view_published(store, lesson.id)
        viewed = await lesson_service.view_published(store, lesson.id)
        assert viewed.views == 2

    asyncio.run(scenario())


def test_review_flow_notifies_teacher() -> None:
    async def scenario() -> None:
        teacher, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        lesson = await lesson_service.create_lesson(store, me, module.id, {"title": "L"})
        await lesson_service.set_status(store, me, lesson.id, "UNDER_REVIEW")
        assert [x.id for x in await lesson_service.pending_reviews(store)] == [lesson.id]

        supervisor = identity_for(await add_principal("SUPERVISOR"))
        notifier = RecordingNotifier()
        with pytest.raises(ValidationFailed):
            await lesson_service.review_lesson(store, supervisor, notifier, lesson.id, approve=False)

        rejected = await lesson_service.review_lesson(
            store, supervisor, notifier, lesson.id, approve=False, reason=" Too short "
        )
        assert rejected.status == "REJECTED"
        assert rejected.rejection_reason == "Too short"
        assert str(rejected.reviewed_by) == supervisor.principal_id
        template, to, params = notifier.sent[-1]
        assert (template, to, params["decision"]) == ("lesson_reviewed", teacher.email, "rejected")

        with pytest.raises(Forbidden):
            await lesson_service.review_lesson(store, me, notifier, lesson.id, approve=True)

    asyncio.run(scenario())


def test_lesson_stats() -> None:
    async def scenario() -> None:
        _, me, course = await _teacher_course()
        module = await module_service.create_module(store, me, course.id, {"title": "A"})
        a = await lesson_service.create_lesson(
            store, me, module.id, {"title": "A", "quizzes": [{"question": "q"}]}
        )
        await lesson_service.create_lesson(store, me, module.id, {"title": "B"})
        await lesson_service.set_status(store, me, a.id, "PUBLISHED")
        await lesson_service.view_published(store, a.id)

        stats = await lesson_service.lesson_stats(store, me)
        assert stats.total_lessons == 2
        assert stats.published_lessons == 1
        assert stats.draft_lessons == 1
        assert stats.total_views == 1
        assert stats.total_quizzes == 1
        assert stats.most_popular is not None and stats.most_popular.id == a.id

    asyncio.run(scenario())
