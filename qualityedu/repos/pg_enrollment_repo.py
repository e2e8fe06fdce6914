"""PostgreSQL implementation of EnrollmentRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from qualityedu.db.tables import EnrollmentRow
from qualityedu.models.enrollment import Enrollment, LessonProgress, QuizStats


class PgEnrollmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        row = await self._session.get(EnrollmentRow, enrollment_id)
        return _row_to_enrollment(row) if row is not None else None

    async def get_for(self, student_id: UUID, course_id: UUID) -> Enrollment | None:
        stmt = select(EnrollmentRow).where(
            EnrollmentRow.student_id == student_id,
            EnrollmentRow.course_id == course_id,
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        return _row_to_enrollment(row) if row is not None else None

    async def add(self, enrollment: Enrollment) -> None:
        # The (student_id, course_id) unique constraint backs the
        # service-level duplicate check.
        self._session.add(_enrollment_to_row(enrollment))
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ValueError("already enrolled") from exc

    async def save(self, enrollment: Enrollment) -> None:
        await self._session.merge(_enrollment_to_row(enrollment))
        await self._session.flush()

    async def _list(self, *criteria) -> list[Enrollment]:
        stmt = select(EnrollmentRow).where(*criteria).order_by(EnrollmentRow.enrolled_at)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_enrollment(r) for r in rows]

    async def list_by_student(self, student_id: UUID) -> list[Enrollment]:
        return await self._list(EnrollmentRow.student_id == student_id)

    async def list_by_teacher(self, teacher_id: UUID) -> list[Enrollment]:
        return await self._list(EnrollmentRow.teacher_id == teacher_id)

    async def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        return await self._list(EnrollmentRow.course_id == course_id)

    async def delete_by_course(self, course_id: UUID) -> int:
        result = await self._session.execute(
            delete(EnrollmentRow).where(EnrollmentRow.course_id == course_id)
        )
        return result.rowcount or 0


def _enrollment_to_row(e: Enrollment) -> EnrollmentRow:
    return EnrollmentRow(
        id=e.id,
        student_id=e.student_id,
        course_id=e.course_id,
        teacher_id=e.teacher_id,
        enrolled_at=e.enrolled_at,
        progress=e.progress,
        status=e.status,
        grade=e.grade,
        completed_lessons=e.completed_lessons,
        total_lessons=e.total_lessons,
        last_activity=e.last_activity,
        completed_at=e.completed_at,
        lesson_progress=[lp.to_dict() for lp in e.lesson_progress],
        quiz_stats=e.quiz_stats.to_dict(),
        current_streak=e.current_streak,
        total_time_spent=e.total_time_spent,
        certificate_id=e.certificate_id,
        at_risk=e.at_risk,
    )


def _row_to_enrollment(row: EnrollmentRow) -> Enrollment:
    return Enrollment(
        id=row.id,
        student_id=row.student_id,
        course_id=row.course_id,
        teacher_id=row.teacher_id,
        enrolled_at=row.enrolled_at,
        progress=row.progress,
        status=row.status,  # type: ignore[arg-type]
        grade=row.grade,
        completed_lessons=row.completed_lessons,
        total_lessons=row.total_lessons,
        last_activity=row.last_activity,
        completed_at=row.completed_at,
        lesson_progress=tuple(LessonProgress.from_dict(d) for d in row.lesson_progress or ()),
        quiz_stats=QuizStats.from_dict(row.quiz_stats),
        current_streak=row.current_streak,
        total_time_spent=row.total_time_spent,
        certificate_id=row.certificate_id,
        at_risk=row.at_risk,
    )
