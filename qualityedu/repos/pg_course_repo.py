"""PostgreSQL implementations of CourseRepo, ModuleRepo and LessonRepo."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from qualityedu.db.tables import CourseRow, LessonRow, ModuleRow
from qualityedu.models.course import Course, CourseModule, Lesson, Quiz

_COURSE_DETAILS = (
    "instructor",
    "instructor_title",
    "image",
    "estimated_duration",
)
_MODULE_DETAILS = ("description", "duration", "cover_image")
_LESSON_DETAILS = (
    "description",
    "video_url",
    "duration",
    "cover_image",
    "transcript",
    "difficulty",
    "language",
    "video_thumbnail",
    "rejection_reason",
)


class PgCourseRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, course_id: UUID) -> Course | None:
        row = await self._session.get(CourseRow, course_id)
        return _row_to_course(row) if row is not None else None

    async def add(self, course: Course) -> None:
        self._session.add(_course_to_row(course))
        await self._session.flush()

    async def save(self, course: Course) -> None:
        await self._session.merge(_course_to_row(course))
        await self._session.flush()

    async def delete(self, course_id: UUID) -> None:
        await self._session.execute(delete(CourseRow).where(CourseRow.id == course_id))

    async def _list(self, *criteria) -> list[Course]:
        stmt = select(CourseRow).where(*criteria).order_by(CourseRow.created_at)
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_course(r) for r in rows]

    async def list_all(self) -> list[Course]:
        return await self._list()

    async def list_by_teacher(self, teacher_id: UUID) -> list[Course]:
        return await self._list(CourseRow.teacher_id == teacher_id)

    async def list_by_status(self, status: str) -> list[Course]:
        return await self._list(CourseRow.status == status)


class PgModuleRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, module_id: UUID) -> CourseModule | None:
        row = await self._session.get(ModuleRow, module_id)
        return _row_to_module(row) if row is not None else None

    async def add(self, module: CourseModule) -> None:
        self._session.add(_module_to_row(module))
        await self._session.flush()

    async def save(self, module: CourseModule) -> None:
        await self._session.merge(_module_to_row(module))
        await self._session.flush()

    async def delete(self, module_id: UUID) -> None:
        await self._session.execute(delete(ModuleRow).where(ModuleRow.id == module_id))

    async def list_by_course(self, course_id: UUID) -> list[CourseModule]:
        stmt = (
            select(ModuleRow)
            .where(ModuleRow.course_id == course_id)
            .order_by(ModuleRow.order)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_module(r) for r in rows]

    async def list_by_teacher(self, teacher_id: UUID) -> list[CourseModule]:
        stmt = (
            select(ModuleRow)
            .where(ModuleRow.teacher_id == teacher_id)
            .order_by(ModuleRow.created_at, ModuleRow.order)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_module(r) for r in rows]


class PgLessonRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, lesson_id: UUID) -> Lesson | None:
        row = await self._session.get(LessonRow, lesson_id)
        return _row_to_lesson(row) if row is not None else None

    async def add(self, lesson: Lesson) -> None:
        self._session.add(_lesson_to_row(lesson))
        await self._session.flush()

    async def save(self, lesson: Lesson) -> None:
        await self._session.merge(_lesson_to_row(lesson))
        await self._session.flush()

    async def delete(self, lesson_id: UUID) -> None:
        await self._session.execute(delete(LessonRow).where(LessonRow.id == lesson_id))

    async def _list(self, *criteria, order_by=None) -> list[Lesson]:
        stmt = select(LessonRow).where(*criteria)
        stmt = stmt.order_by(*(order_by or (LessonRow.created_at,)))
        rows = (await self._session.execute(stmt)).scalars().all()
        return [_row_to_lesson(r) for r in rows]

    async def list_by_module(self, module_id: UUID) -> list[Lesson]:
        return await self._list(LessonRow.module_id == module_id, order_by=(LessonRow.order,))

    async def list_by_course(self, course_id: UUID) -> list[Lesson]:
        return await self._list(
            LessonRow.course_id == course_id,
            order_by=(LessonRow.module_id, LessonRow.order),
        )

    async def list_by_teacher(self, teacher_id: UUID) -> list[Lesson]:
        return await self._list(LessonRow.teacher_id == teacher_id)

    async def list_by_status(self, status: str) -> list[Lesson]:
        return await self._list(LessonRow.status == status)


# --- row <-> model --------------------------------------------------------


def _course_to_row(c: Course) -> CourseRow:
    details: dict = {name: getattr(c, name) for name in _COURSE_DETAILS}
    details["prerequisites"] = list(c.prerequisites)
    details["learning_objectives"] = list(c.learning_objectives)
    return CourseRow(
        id=c.id,
        teacher_id=c.teacher_id,
        title=c.title,
        category=c.category,
        level=c.level,
        description=c.description,
        status=c.status,
        price=c.price,
        students=c.students,
        modules=c.modules,
        details=details,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


def _row_to_course(row: CourseRow) -> Course:
    details = row.details or {}
    return Course(
        id=row.id,
        teacher_id=row.teacher_id,
        title=row.title,
        category=row.category,
        level=row.level,
        description=row.description,
        status=row.status,  # type: ignore[arg-type]
        price=row.price,
        students=row.students,
        modules=row.modules,
        prerequisites=tuple(details.get("prerequisites") or ()),
        learning_objectives=tuple(details.get("learning_objectives") or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
        **{name: details.get(name) or "" for name in _COURSE_DETAILS},
    )


def _module_to_row(m: CourseModule) -> ModuleRow:
    details: dict = {name: getattr(m, name) for name in _MODULE_DETAILS}
    details["learning_objectives"] = list(m.learning_objectives)
    details["prerequisites"] = list(m.prerequisites)
    return ModuleRow(
        id=m.id,
        course_id=m.course_id,
        teacher_id=m.teacher_id,
        title=m.title,
        order=m.order,
        status=m.status,
        total_lessons=m.total_lessons,
        details=details,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


def _row_to_module(row: ModuleRow) -> CourseModule:
    details = row.details or {}
    return CourseModule(
        id=row.id,
        course_id=row.course_id,
        teacher_id=row.teacher_id,
        title=row.title,
        order=row.order,
        status=row.status,  # type: ignore[arg-type]
        total_lessons=row.total_lessons,
        learning_objectives=tuple(details.get("learning_objectives") or ()),
        prerequisites=tuple(details.get("prerequisites") or ()),
        created_at=row.created_at,
        updated_at=row.updated_at,
        **{name: details.get(name) or "" for name in _MODULE_DETAILS},
    )


def _lesson_to_row(x: Lesson) -> LessonRow:
    details: dict = {name: getattr(x, name) for name in _LESSON_DETAILS}
    details["tags"] = list(x.tags)
    return LessonRow(
        id=x.id,
        module_id=x.module_id,
        course_id=x.course_id,
        teacher_id=x.teacher_id,
        title=x.title,
        order=x.order,
        status=x.status,
        views=x.views,
        average_rating=x.average_rating,
        quizzes=[q.to_dict() for q in x.quizzes],
        reviewed_by=x.reviewed_by,
        details=details,
        created_at=x.created_at,
        updated_at=x.updated_at,
    )


def _row_to_lesson(row: LessonRow) -> Lesson:
    details = row.details or {}
    return Lesson(
        id=row.id,
        module_id=row.module_id,
        course_id=row.course_id,
        teacher_id=row.teacher_id,
        title=row.title,
        order=row.order,
        status=row.status,  # type: ignore[arg-type]
        views=row.views,
        average_rating=row.average_rating,
        quizzes=tuple(Quiz.from_dict(q) for q in row.quizzes or ()),
        reviewed_by=row.reviewed_by,
        tags=tuple(details.get("tags") or ()),
        description=details.get("description") or "",
        video_url=details.get("video_url") or "",
        duration=details.get("duration") or "",
        cover_image=details.get("cover_image") or "",
        transcript=details.get("transcript") or "",
        difficulty=details.get("difficulty") or "",
        language=details.get("language") or "",
        video_thumbnail=details.get("video_thumbnail"),
        rejection_reason=details.get("rejection_reason"),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
