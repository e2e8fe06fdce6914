from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

CourseStatus = Literal["draft", "published"]
ContentStatus = Literal["DRAFT", "PUBLISHED", "UNDER_REVIEW", "ARCHIVED", "REJECTED"]
QuizType = Literal["MULTIPLE_CHOICE", "TRUE_FALSE", "FILL_IN_BLANK", "SHORT_ANSWER"]

COURSE_STATUSES: tuple[str, ...] = ("draft", "published")
CONTENT_STATUSES: tuple[str, ...] = (
    "DRAFT",
    "PUBLISHED",
    "UNDER_REVIEW",
    "ARCHIVED",
    "REJECTED",
)
QUIZ_TYPES: tuple[str, ...] = (
    "MULTIPLE_CHOICE",
    "TRUE_FALSE",
    "FILL_IN_BLANK",
    "SHORT_ANSWER",
)


@dataclass(frozen=True, slots=True)
class Course:
    id: UUID
    teacher_id: UUID
    title: str
    category: str = ""
    level: str = ""
    description: str = ""
    instructor: str = ""
    instructor_title: str = ""
    image: str = ""
    price: float = 0.0
    estimated_duration: str = ""
    prerequisites: tuple[str, ...] = ()
    learning_objectives: tuple[str, ...] = ()
    status: CourseStatus = "draft"
    students: int = 0  # derived: enrollment count
    modules: int = 0  # derived: module count
    created_at: int = 0
    updated_at: int | None = None

    @property
    def is_published(self) -> bool:
        return self.status == "published"

    @staticmethod
    def new(*, teacher_id: UUID, title: str, created_at: int, **fields: object) -> Course:
        return Course(
            id=uuid4(),
            teacher_id=teacher_id,
            title=title,
            created_at=created_at,
            **fields,  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True)
class CourseModule:
    id: UUID
    course_id: UUID
    teacher_id: UUID
    title: str
    order: int
    description: str = ""
    duration: str = ""
    status: ContentStatus = "DRAFT"
    cover_image: str = ""
    learning_objectives: tuple[str, ...] = ()
    prerequisites: tuple[str, ...] = ()
    total_lessons: int = 0  # derived from the lessons collection
    created_at: int = 0
    updated_at: int | None = None

    @staticmethod
    def new(
        *,
        course_id: UUID,
        teacher_id: UUID,
        title: str,
        order: int,
        created_at: int,
        **fields: object,
    ) -> CourseModule:
        return CourseModule(
            id=uuid4(),
            course_id=course_id,
            teacher_id=teacher_id,
            title=title,
            order=order,
            created_at=created_at,
            **fields,  # type: ignore[arg-type]
        )


@dataclass(frozen=True, slots=True)
class Quiz:
    id: str
    question: str
    options: tuple[str, ...] = ()
    correct_answer: int | None = None
    explanation: str = ""
    points: int = 1
    type: QuizType = "MULTIPLE_CHOICE"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question": self.question,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "explanation": self.explanation,
            "points": self.points,
            "type": self.type,
        }

    @staticmethod
    def from_dict(data: dict) -> Quiz:
        return Quiz(
            id=data.get("id") or str(uuid4()),
            question=data["question"],
            options=tuple(data.get("options") or ()),
            correct_answer=data.get("correct_answer"),
            explanation=data.get("explanation") or "",
            points=data.get("points") or 1,
            type=data.get("type") or "MULTIPLE_CHOICE",
        )


@dataclass(frozen=True, slots=True)
class Lesson:
    id: UUID
    module_id: UUID
    course_id: UUID
    teacher_id: UUID
    title: str
    order: int
    description: str = ""
    video_url: str = ""
    duration: str = ""
    status: ContentStatus = "DRAFT"
    quizzes: tuple[Quiz, ...] = ()
    cover_image: str = ""
    transcript: str = ""
    tags: tuple[str, ...] = ()
    difficulty: str = ""
    language: str = ""
    video_thumbnail: str | None = None
    views: int = 0
    average_rating: float = 0.0
    reviewed_by: UUID | None = None
    rejection_reason: str | None = None
    created_at: int = 0
    updated_at: int | None = None

    @property
    def is_published(self) -> bool:
        return self.status == "PUBLISHED"

    @staticmethod
    def new(
        *,
        module_id: UUID,
        course_id: UUID,
        teacher_id: UUID,
        title: str,
        order: int,
        created_at: int,
        **fields: object,
    ) -> Lesson:
        return Lesson(
            id=uuid4(),
            module_id=module_id,
            course_id=course_id,
            teacher_id=teacher_id,
            title=title,
            order=order,
            created_at=created_at,
            **fields,  # type: ignore[arg-type]
        )


_YOUTUBE_ID = re.compile(r"(?:watch\?(?:.*&)?v=|youtu\.be/)([A-Za-z0-9_-]+)")


def youtube_thumbnail(video_url: str | None) -> str | None:
    """Return the mqdefault thumbnail URL for a YouTube link, else None."""
    if not video_url:
        return None
    match = _YOUTUBE_ID.search(video_url)
    if match is None:
        return None
    return f"https://img.youtube.com/vi/{match.group(1)}/mqdefault.jpg"
