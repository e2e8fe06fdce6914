"""Course, module, and lesson repositories.

The three live together because they form one ownership tree
(course -> modules -> lessons) and cascade deletes walk all of it.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from qualityedu.models.course import Course, CourseModule, Lesson


class CourseRepo(Protocol):
    async def get(self, course_id: UUID) -> Course | None: ...
    async def add(self, course: Course) -> None: ...
    async def save(self, course: Course) -> None: ...
    async def delete(self, course_id: UUID) -> None: ...
    async def list_all(self) -> list[Course]: ...
    async def list_by_teacher(self, teacher_id: UUID) -> list[Course]: ...
    async def list_by_status(self, status: str) -> list[Course]: ...


class ModuleRepo(Protocol):
    async def get(self, module_id: UUID) -> CourseModule | None: ...
    async def add(self, module: CourseModule) -> None: ...
    async def save(self, module: CourseModule) -> None: ...
    async def delete(self, module_id: UUID) -> None: ...
    async def list_by_course(self, course_id: UUID) -> list[CourseModule]: ...
    async def list_by_teacher(self, teacher_id: UUID) -> list[CourseModule]: ...


class LessonRepo(Protocol):
    async def get(self, lesson_id: UUID) -> Lesson | None: ...
    async def add(self, lesson: Lesson) -> None: ...
    async def save(self, lesson: Lesson) -> None: ...
    async def delete(self, lesson_id: UUID) -> None: ...
    async def list_by_module(self, module_id: UUID) -> list[Lesson]: ...
    async def list_by_course(self, course_id: UUID) -> list[Lesson]: ...
    async def list_by_teacher(self, teacher_id: UUID) -> list[Lesson]: ...
    async def list_by_status(self, status: str) -> list[Lesson]: ...


class InMemoryCourseRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Course] = {}

    async def get(self, course_id: UUID) -> Course | None:
        return self._by_id.get(course_id)

    async def add(self, course: Course) -> None:
        self._by_id[course.id] = course

    async def save(self, course: Course) -> None:
        if course.id not in self._by_id:
            raise KeyError("course not found")
        self._by_id[course.id] = course

    async def delete(self, course_id: UUID) -> None:
        self._by_id.pop(course_id, None)

    async def list_all(self) -> list[Course]:
        return sorted(self._by_id.values(), key=lambda c: c.created_at)

    async def list_by_teacher(self, teacher_id: UUID) -> list[Course]:
        return [c for c in await self.list_all() if c.teacher_id == teacher_id]

    async def list_by_status(self, status: str) -> list[Course]:
        return [c for c in await self.list_all() if c.status == status]


class InMemoryModuleRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, CourseModule] = {}

    async def get(self, module_id: UUID) -> CourseModule | None:
        return self._by_id.get(module_id)

    async def add(self, module: CourseModule) -> None:
        self._by_id[module.id] = module

    async def save(self, module: CourseModule) -> None:
        if module.id not in self._by_id:
            raise KeyError("module not found")
        self._by_id[module.id] = module

    async def delete(self, module_id: UUID) -> None:
        self._by_id.pop(module_id, None)

    async def list_by_course(self, course_id: UUID) -> list[CourseModule]:
        found = [m for m in self._by_id.values() if m.course_id == course_id]
        return sorted(found, key=lambda m: m.order)

    async def list_by_teacher(self, teacher_id: UUID) -> list[CourseModule]:
        found = [m for m in self._by_id.values() if m.teacher_id == teacher_id]
        return sorted(found, key=lambda m: (m.created_at, m.order))


class InMemoryLessonRepo:
    def __init__(self) -> None:
        self._by_id: dict[UUID, Lesson] = {}

    async def get(self, lesson_id: UUID) -> Lesson | None:
        return self._by_id.get(lesson_id)

    async def add(self, lesson: Lesson) -> None:
        self._by_id[lesson.id] = lesson

    async def save(self, lesson: Lesson) -> None:
        if lesson.id not in self._by_id:
            raise KeyError("lesson not found")
        self._by_id[lesson.id] = lesson

    async def delete(self, lesson_id: UUID) -> None:
        self._by_id.pop(lesson_id, None)

    async def list_by_module(self, module_id: UUID) -> list[Lesson]:
        found = [x for x in self._by_id.values() if x.module_id == module_id]
        return sorted(found, key=lambda x: x.order)

    async def list_by_course(self, course_id: UUID) -> list[Lesson]:
        found = [x for x in self._by_id.values() if x.course_id == course_id]
        return sorted(found, key=lambda x: (str(x.module_id), x.order))

    async def list_by_teacher(self, teacher_id: UUID) -> list[Lesson]:
        found = [x for x in self._by_id.values() if x.teacher_id == teacher_id]
        return sorted(found, key=lambda x: x.created_at)

    async def list_by_status(self, status: str) -> list[Lesson]:
        found = [x for x in self._by_id.values() if x.status == status]
        return sorted(found, key=lambda x: x.created_at)
