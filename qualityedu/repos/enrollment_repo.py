from __future__ import annotations

from typing import Protocol
from uuid import UUID

from qualityedu.models.enrollment import Enrollment


class EnrollmentRepo(Protocol):
    async def get(self, enrollment_id: UUID) -> Enrollment | None: ...
    async def get_for(self, student_id: UUID, course_id: UUID) -> Enrollment | None: ...
    async def add(self, enrollment: Enrollment) -> None: ...
    async def save(self, enrollment: Enrollment) -> None: ...
    async def list_by_student(self, student_id: UUID) -> list[Enrollment]: ...
    async def list_by_teacher(self, teacher_id: UUID) -> list[Enrollment]: ...
    async def list_by_course(self, course_id: UUID) -> list[Enrollment]: ...
    async def delete_by_course(self, course_id: UUID) -> int: ...


class InMemoryEnrollmentRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Enrollment] = {}

    async def get(self, enrollment_id: UUID) -> Enrollment | None:
        return self._by_id.get(enrollment_id)

    async def get_for(self, student_id: UUID, course_id: UUID) -> Enrollment | None:
        for e in self._by_id.values():
            if e.student_id == student_id and e.course_id == course_id:
                return e
        return None

    async def add(self, enrollment: Enrollment) -> None:
        if await self.get_for(enrollment.student_id, enrollment.course_id):
            raise ValueError("already enrolled")
        self._by_id[enrollment.id] = enrollment

    async def save(self, enrollment: Enrollment) -> None:
        # Whole-document replace: last writer wins.
        if enrollment.id not in self._by_id:
            raise KeyError("enrollment not found")
        self._by_id[enrollment.id] = enrollment

    async def list_by_student(self, student_id: UUID) -> list[Enrollment]:
        found = [e for e in self._by_id.values() if e.student_id == student_id]
        return sorted(found, key=lambda e: e.enrolled_at)

    async def list_by_teacher(self, teacher_id: UUID) -> list[Enrollment]:
        found = [e for e in self._by_id.values() if e.teacher_id == teacher_id]
        return sorted(found, key=lambda e: e.enrolled_at)

    async def list_by_course(self, course_id: UUID) -> list[Enrollment]:
        found = [e for e in self._by_id.values() if e.course_id == course_id]
        return sorted(found, key=lambda e: e.enrolled_at)

    async def delete_by_course(self, course_id: UUID) -> int:
        doomed = [k for k, e in self._by_id.items() if e.course_id == course_id]
        for key in doomed:
            del self._by_id[key]
        return len(doomed)
