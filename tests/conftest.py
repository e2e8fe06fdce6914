from __future__ import annotations

import os
import sys
from dataclasses import replace
from pathlib import Path

# Settings are loaded at import time, so the environment has to be in place
# before anything under qualityedu is imported.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-at-least-32-bytes-long")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

# Ensure repo root is on sys.path so `import qualityedu` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qualityedu.main import app  # noqa: E402
from qualityedu.models.course import Course, CourseModule, Lesson  # noqa: E402
from qualityedu.models.identity import Identity  # noqa: E402
from qualityedu.models.principal import Principal  # noqa: E402
from qualityedu.repos.store import memory_store, reset_memory_store  # noqa: E402
from qualityedu.services.auth_service import hash_password  # noqa: E402
from qualityedu.services.task_queue import task_queue  # noqa: E402
from qualityedu.services.token_service import token_codec  # noqa: E402

PASSWORD = "correct-horse-battery"


@pytest.fixture(autouse=True)
def reset_store() -> None:
    reset_memory_store()


@pytest.fixture(autouse=True)
def reset_task_queue() -> None:
    """Clear task queues between tests."""
    if hasattr(task_queue, "_queues"):
        task_queue._queues.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    email: str = "someone@example.com",
    principal_id: object = "00000000-0000-0000-0000-000000000000",
    principal_type: str = "STUDENT",
) -> str:
    """Create a valid HS256 bearer token for testing."""
    return token_codec.issue(
        subject=email, principal_id=str(principal_id), principal_type=principal_type
    )


def auth_header(principal: Principal) -> dict[str, str]:
    token = mint_token(principal.email, principal.id, principal.kind)
    return {"Authorization": f"Bearer {token}"}


def identity_for(principal: Principal) -> Identity:
    return Identity(
        subject=principal.email,
        role=principal.kind,
        principal_id=str(principal.id),
    )


# ---------------------------------------------------------------------------
# Seed helpers: write straight into the in-memory store
# ---------------------------------------------------------------------------


async def add_principal(
    kind: str = "STUDENT",
    email: str | None = None,
    status: str | None = None,
    password: str = PASSWORD,
    **fields: object,
) -> Principal:
    principal = Principal.new(
        kind=kind,  # type: ignore[arg-type]
        email=email or f"{kind.lower()}-{os.urandom(3).hex()}@example.com",
        password_hash=hash_password(password),
        created_at=1_700_000_000,
        **fields,
    )
    if status is not None:
        principal = replace(principal, status=status)  # type: ignore[arg-type]
    await memory_store.principals.add(principal)
    return principal


async def add_course(teacher: Principal, status: str = "published", **fields: object) -> Course:
    course = Course.new(
        teacher_id=teacher.id,
        title=fields.pop("title", "Spanish for Beginners"),  # type: ignore[arg-type]
        created_at=1_700_000_000,
        status=status,
        **fields,
    )
    await memory_store.courses.add(course)
    return course


async def add_module(course: Course, order: int = 1, title: str | None = None) -> CourseModule:
    module = CourseModule.new(
        course_id=course.id,
        teacher_id=course.teacher_id,
        title=title or f"Module {order}",
        order=order,
        created_at=1_700_000_000,
    )
    await memory_store.modules.add(module)
    return module


async def add_lesson(
    module: CourseModule, order: int = 1, status: str = "PUBLISHED", **fields: object
) -> Lesson:
    lesson = Lesson.new(
        module_id=module.id,
        course_id=module.course_id,
        teacher_id=module.teacher_id,
        title=fields.pop("title", f"Lesson {order}"),  # type: ignore[arg-type]
        order=order,
        created_at=1_700_000_000 + order,
        status=status,
        **fields,
    )
    await memory_store.lessons.add(lesson)
    return lesson
