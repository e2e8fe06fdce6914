"""Enrollment lifecycle and lesson events.

Each lesson event loads the enrollment, runs the progress engine
(services/progress_service.py) and saves the result.  Concurrent events
on the same enrollment are last-writer-wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from qualityedu.core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from qualityedu.core.metrics import LESSON_COMPLETIONS
from qualityedu.models.enrollment import Enrollment
from qualityedu.models.identity import Identity
from qualityedu.models.principal import Principal
from qualityedu.repos.store import Store
from qualityedu.services import course_service, lesson_service, progress_service
from qualityedu.services.access import now_ts, principal_uuid

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StudentStats:
    courses_enrolled: int
    courses_completed: int
    total_lessons: int
    completed_lessons: int
    average_score: float
    current_streak: int
    total_time_spent: int


@dataclass(frozen=True, slots=True)
class Activity:
    kind: str  # lesson_started | lesson_completed | quiz_completed
    course_id: UUID
    lesson_id: UUID
    timestamp: int
    score: int | None = None


@dataclass(frozen=True, slots=True)
class TeacherStudent:
    student: Principal
    enrollments: tuple[Enrollment, ...]


async def enroll(store: Store, identity: Identity, course_id: UUID) -> Enrollment:
    student_id = principal_uuid(identity)
    course = await store.courses.get(course_id)
    if course is None or not course.is_published:
        raise NotFound("Course not found")
    if await store.enrollments.get_for(student_id, course.id) is not None:
        raise Conflict("Already enrolled in this course")

    enrollment = Enrollment.new(
        student_id=student_id,
        course_id=course.id,
        teacher_id=course.teacher_id,
        enrolled_at=now_ts(),
        total_lessons=await lesson_service.published_lesson_count(store, course.id),
    )
    try:
        await store.enrollments.add(enrollment)
    except ValueError:
        raise Conflict("Already enrolled in this course") from None
    await course_service.recount_students(store, course.id)
    logger.info(
        "Enrolled student_id=%s course_id=%s total_lessons=%d",
        student_id,
        course.id,
        enrollment.total_lessons,
    )
    return enrollment


async def get_enrollment(store: Store, identity: Identity, course_id: UUID) -> Enrollment:
    enrollment = await store.enrollments.get_for(principal_uuid(identity), course_id)
    if enrollment is None:
        raise NotFound("Enrollment not found")
    return enrollment


async def _active_enrollment(store: Store, identity: Identity, course_id: UUID) -> Enrollment:
    enrollment = await get_enrollment(store, identity, course_id)
    if enrollment.status == "dropped":
        raise Conflict("Enrollment has been dropped")
    return enrollment


async def _check_lesson_in_course(store: Store, course_id: UUID, lesson_id: UUID) -> None:
    lesson = await store.lessons.get(lesson_id)
    if lesson is None or lesson.course_id != course_id or not lesson.is_published:
        raise NotFound("Lesson not found in this course")


async def drop_enrollment(store: Store, identity: Identity, course_id: UUID) -> Enrollment:
    enrollment = await _active_enrollment(store, identity, course_id)
    dropped = progress_service.drop(enrollment, now=now_ts())
    await store.enrollments.save(dropped)
    await course_service.recount_students(store, course_id)
    logger.info("Enrollment dropped enrollment_id=%s", enrollment.id)
    return dropped


async def start_lesson(
    store: Store, identity: Identity, course_id: UUID, lesson_id: UUID
) -> Enrollment:
    enrollment = await _active_enrollment(store, identity, course_id)
    await _check_lesson_in_course(store, course_id, lesson_id)
    updated = progress_service.record_lesson_start(enrollment, lesson_id, now=now_ts())
    await store.enrollments.save(updated)
    return updated


async def complete_lesson(
    store: Store,
    identity: Identity,
    course_id: UUID,
    lesson_id: UUID,
    *,
    quiz_score: int | None = None,
    time_spent: int = 0,
) -> Enrollment:
    if quiz_score is not None and not 0 <= quiz_score <= 100:
        raise ValidationFailed(f"quiz_score must be 0-100 (got {quiz_score})")
    enrollment = await _active_enrollment(store, identity, course_id)
    await _check_lesson_in_course(store, course_id, lesson_id)

    previous = enrollment.progress_for(lesson_id)
    updated = progress_service.record_lesson_completion(
        enrollment, lesson_id, quiz_score, time_spent, now=now_ts()
    )
    await store.enrollments.save(updated)

    if previous is None or not previous.completed:
        LESSON_COMPLETIONS.inc()
        logger.info(
            "Lesson completed enrollment_id=%s lesson_id=%s progress=%d status=%s",
            updated.id,
            lesson_id,
            updated.progress,
            updated.status,
        )
    return updated


async def submit_quiz(
    store: Store, identity: Identity, course_id: UUID, lesson_id: UUID, score: int
) -> Enrollment:
    if not 0 <= score <= 100:
        raise ValidationFailed(f"score must be 0-100 (got {score})")
    enrollment = await _active_enrollment(store, identity, course_id)
    await _check_lesson_in_course(store, course_id, lesson_id)
    updated = progress_service.record_quiz_attempt(enrollment, lesson_id, score, now=now_ts())
    await store.enrollments.save(updated)
    return updated


async def set_at_risk(
    store: Store, identity: Identity, enrollment_id: UUID, flagged: bool
) -> Enrollment:
    """Teacher-supplied risk signal on one of their own enrollments."""
    enrollment = await store.enrollments.get(enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found")
    if not identity.has_role("SUPERVISOR") and not identity.owns(enrollment.teacher_id):
        raise Forbidden("You can only manage your own students")
    if enrollment.status == "dropped":
        raise Conflict("Enrollment has been dropped")

    updated = progress_service.set_at_risk(enrollment, flagged, now=now_ts())
    await store.enrollments.save(updated)
    logger.info("Enrollment at_risk=%s enrollment_id=%s", flagged, enrollment.id)
    return updated


async def list_student_enrollments(store: Store, identity: Identity) -> list[Enrollment]:
    return await store.enrollments.list_by_student(principal_uuid(identity))


async def student_stats(store: Store, identity: Identity) -> StudentStats:
    enrollments = await list_student_enrollments(store, identity)
    live = [e for e in enrollments if e.status != "dropped"]
    scored = [e.quiz_stats.average_score for e in live if e.quiz_stats.average_score > 0]
    return StudentStats(
        courses_enrolled=len(live),
        courses_completed=sum(1 for e in live if e.status == "completed"),
        total_lessons=sum(e.total_lessons for e in live),
        completed_lessons=sum(e.completed_lessons for e in live),
        average_score=round(sum(scored) / len(scored), 2) if scored else 0.0,
        current_streak=max((e.current_streak for e in live), default=0),
        total_time_spent=sum(e.total_time_spent for e in live),
    )


async def student_activities(
    store: Store, identity: Identity, limit: int = 20
) -> list[Activity]:
    """Activity feed derived from lesson progress, newest first."""
    activities: list[Activity] = []
    for enrollment in await list_student_enrollments(store, identity):
        for entry in enrollment.lesson_progress:
            if entry.started_at is not None:
                activities.append(
                    Activity("lesson_started", enrollment.course_id, entry.lesson_id, entry.started_at)
                )
            if entry.completed and entry.completed_at is not None:
                activities.append(
                    Activity("lesson_completed", enrollment.course_id, entry.lesson_id, entry.completed_at)
                )
                if entry.attempts > 0:
                    activities.append(
                        Activity(
                            "quiz_completed",
                            enrollment.course_id,
                            entry.lesson_id,
                            entry.completed_at,
                            score=entry.quiz_score,
                        )
                    )
    activities.sort(key=lambda a: a.timestamp, reverse=True)
    return activities[:limit]


async def teacher_students(store: Store, identity: Identity) -> list[TeacherStudent]:
    """Students across the caller's courses, grouped, sorted by name."""
    grouped: dict[UUID, list[Enrollment]] = {}
    for enrollment in await store.enrollments.list_by_teacher(principal_uuid(identity)):
        grouped.setdefault(enrollment.student_id, []).append(enrollment)

    result = []
    for student_id, enrollments in grouped.items():
        student = await store.principals.get_by_id(student_id)
        if student is None:
            continue
        result.append(TeacherStudent(student=student, enrollments=tuple(enrollments)))
    result.sort(key=lambda ts: ts.student.display_name.lower())
    return result


async def student_details(
    store: Store, identity: Identity, student_id: UUID
) -> TeacherStudent:
    enrollments = [
        e
        for e in await store.enrollments.list_by_teacher(principal_uuid(identity))
        if e.student_id == student_id
    ]
    student = await store.principals.get_by_id(student_id) if enrollments else None
    if student is None:
        raise NotFound("Student is not enrolled in any of your courses")
    return TeacherStudent(student=student, enrollments=tuple(enrollments))
