"""Repository bundle handed to services.

Services take a ``Store`` instead of five separate repos so cascade
operations (delete a course -> its modules, lessons, enrollments) can
reach every collection through one argument.  ``get_store`` is the
FastAPI dependency: the process-wide in-memory store when no database is
configured, otherwise a Pg-backed store bound to one request-scoped
session (committed when the request succeeds).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass

from qualityedu.db import engine as db_engine
from qualityedu.repos.course_repo import (
    CourseRepo,
    InMemoryCourseRepo,
    InMemoryLessonRepo,
    InMemoryModuleRepo,
    LessonRepo,
    ModuleRepo,
)
from qualityedu.repos.enrollment_repo import EnrollmentRepo, InMemoryEnrollmentRepo
from qualityedu.repos.principal_repo import InMemoryPrincipalRepo, PrincipalRepo


@dataclass
class Store:
    principals: PrincipalRepo
    courses: CourseRepo
    modules: ModuleRepo
    lessons: LessonRepo
    enrollments: EnrollmentRepo


def in_memory_store() -> Store:
    return Store(
        principals=InMemoryPrincipalRepo(),
        courses=InMemoryCourseRepo(),
        modules=InMemoryModuleRepo(),
        lessons=InMemoryLessonRepo(),
        enrollments=InMemoryEnrollmentRepo(),
    )


def pg_store(session) -> Store:
    # Imported lazily so the in-memory path never touches the Pg modules.
    from qualityedu.repos.pg_course_repo import PgCourseRepo, PgLessonRepo, PgModuleRepo
    from qualityedu.repos.pg_enrollment_repo import PgEnrollmentRepo
    from qualityedu.repos.pg_principal_repo import PgPrincipalRepo

    return Store(
        principals=PgPrincipalRepo(session),
        courses=PgCourseRepo(session),
        modules=PgModuleRepo(session),
        lessons=PgLessonRepo(session),
        enrollments=PgEnrollmentRepo(session),
    )


# Module-level singleton used whenever DATABASE_URL is unset (dev, tests).
memory_store = in_memory_store()


def reset_memory_store() -> None:
    """Swap in empty repositories (tests and dev reseeding)."""
    fresh = in_memory_store()
    memory_store.principals = fresh.principals
    memory_store.courses = fresh.courses
    memory_store.modules = fresh.modules
    memory_store.lessons = fresh.lessons
    memory_store.enrollments = fresh.enrollments


async def get_store() -> AsyncGenerator[Store, None]:
    if db_engine.async_session_factory is None:
        yield memory_store
        return
    async with db_engine.async_session_factory() as session:
        try:
            yield pg_store(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
