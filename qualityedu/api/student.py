"""Student endpoints: profile, enrollment, lesson events, dashboard data.

Every route is STUDENT-only except the profile read, which teachers and
supervisors may also use to look a student up.
"""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status

from qualityedu.api.dependencies import StoreDep, StudentOnly, require_any_role
from qualityedu.api.envelope import ApiResponse, ok
from qualityedu.api.schemas import (
    ActivityOut,
    CompleteLessonIn,
    EnrollmentOut,
    PrincipalOut,
    ProfileUpdateIn,
    QuizSubmitIn,
    StudentStatsOut,
)
from qualityedu.models.identity import Identity
from qualityedu.services import account_service, enrollment_service

router = APIRouter(prefix="/api/student", tags=["student"])

ProfileReader = Annotated[
    Identity, Depends(require_any_role({"STUDENT", "TEACHER", "SUPERVISOR"}))
]


@router.get("/profile/{student_id}")
async def get_profile(student_id: UUID, identity: ProfileReader, store: StoreDep) -> ApiResponse:
    principal = await account_service.get_profile(
        store, identity, student_id, kind="STUDENT", readers={"TEACHER", "SUPERVISOR"}
    )
    return ok(PrincipalOut.model_validate(principal))


@router.put("/profile/{student_id}")
async def update_profile(
    student_id: UUID, payload: ProfileUpdateIn, identity: StudentOnly, store: StoreDep
) -> ApiResponse:
    principal = await account_service.update_profile(
        store, identity, student_id, payload.model_dump(exclude_none=True)
    )
    return ok(PrincipalOut.model_validate(principal), "Profile updated")


@router.get("/stats")
async def stats(identity: StudentOnly, store: StoreDep) -> ApiResponse:
    stats_ = await enrollment_service.student_stats(store, identity)
    return ok(StudentStatsOut.model_validate(stats_))


@router.get("/activities")
async def activities(identity: StudentOnly, store: StoreDep, limit: int = 20) -> ApiResponse:
    feed = await enrollment_service.student_activities(store, identity, limit=max(1, min(limit, 100)))
    return ok([ActivityOut.model_validate(a) for a in feed])


@router.get("/enrollments")
async def enrollments(identity: StudentOnly, store: StoreDep) -> ApiResponse:
    rows = await enrollment_service.list_student_enrollments(store, identity)
    return ok([EnrollmentOut.model_validate(e) for e in rows])


@router.get("/enrollments/{course_id}")
async def enrollment(course_id: UUID, identity: StudentOnly, store: StoreDep) -> ApiResponse:
    row = await enrollment_service.get_enrollment(store, identity, course_id)
    return ok(EnrollmentOut.model_validate(row))


@router.post("/courses/{course_id}/enroll", status_code=status.HTTP_201_CREATED)
async def enroll(course_id: UUID, identity: StudentOnly, store: StoreDep) -> ApiResponse:
    row = await enrollment_service.enroll(store, identity, course_id)
    return ok(EnrollmentOut.model_validate(row), "Enrolled successfully")


@router.post("/courses/{course_id}/drop")
async def drop(course_id: UUID, identity: StudentOnly, store: StoreDep) -> ApiResponse:
    row = await enrollment_service.drop_enrollment(store, identity, course_id)
    return ok(EnrollmentOut.model_validate(row), "Enrollment dropped")


@router.post("/courses/{course_id}/lessons/{lesson_id}/start")
async def start_lesson(
    course_id: UUID, lesson_id: UUID, identity: StudentOnly, store: StoreDep
) -> ApiResponse:
    row = await enrollment_service.start_lesson(store, identity, course_id, lesson_id)
    return ok(EnrollmentOut.model_validate(row), "Lesson started")


@router.post("/courses/{course_id}/lessons/{lesson_id}/complete")
async def complete_lesson(
    course_id: UUID,
    lesson_id: UUID,
    identity: StudentOnly,
    store: StoreDep,
    payload: CompleteLessonIn | None = None,
) -> ApiResponse:
    payload = payload or CompleteLessonIn()
    row = await enrollment_service.complete_lesson(
        store,
        identity,
        course_id,
        lesson_id,
        quiz_score=payload.quiz_score,
        time_spent=payload.time_spent,
    )
    return ok(EnrollmentOut.model_validate(row), "Lesson completed")


@router.post("/courses/{course_id}/lessons/{lesson_id}/quiz")
async def submit_quiz(
    course_id: UUID,
    lesson_id: UUID,
    payload: QuizSubmitIn,
    identity: StudentOnly,
    store: StoreDep,
) -> ApiResponse:
    row = await enrollment_service.submit_quiz(store, identity, course_id, lesson_id, payload.score)
    return ok(EnrollmentOut.model_validate(row), "Quiz submitted")
