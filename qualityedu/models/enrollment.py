from __future__ import annotations

from dataclasses import dataclass
from typing import Literal
from uuid import UUID, uuid4

EnrollmentStatus = Literal["active", "completed", "dropped", "at-risk"]


@dataclass(frozen=True, slots=True)
class LessonProgress:
    """One lesson's sub-record on an Enrollment.

    ``quiz_score`` holds the latest recorded attempt; it is only
    meaningful when ``attempts > 0``.
    """

    lesson_id: UUID
    completed: bool = False
    progress: int = 0  # 0-100
    started_at: int | None = None
    completed_at: int | None = None
    quiz_score: int = 0
    attempts: int = 0
    time_spent: int = 0  # minutes

    def to_dict(self) -> dict:
        return {
            "lesson_id": str(self.lesson_id),
            "completed": self.completed,
            "progress": self.progress,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "quiz_score": self.quiz_score,
            "attempts": self.attempts,
            "time_spent": self.time_spent,
        }

    @staticmethod
    def from_dict(data: dict) -> LessonProgress:
        return LessonProgress(
            lesson_id=UUID(str(data["lesson_id"])),
            completed=bool(data.get("completed", False)),
            progress=int(data.get("progress", 0)),
            started_at=data.get("started_at"),
            completed_at=data.get("completed_at"),
            quiz_score=int(data.get("quiz_score", 0)),
            attempts=int(data.get("attempts", 0)),
            time_spent=int(data.get("time_spent", 0)),
        )


@dataclass(frozen=True, slots=True)
class QuizStats:
    """Aggregate over LessonProgress entries; recomputed, never edited."""

    total_quizzes: int = 0
    completed_quizzes: int = 0
    average_score: float = 0.0
    best_score: int = 0
    total_attempts: int = 0

    def to_dict(self) -> dict:
        return {
            "total_quizzes": self.total_quizzes,
            "completed_quizzes": self.completed_quizzes,
            "average_score": self.average_score,
            "best_score": self.best_score,
            "total_attempts": self.total_attempts,
        }

    @staticmethod
    def from_dict(data: dict | None) -> QuizStats:
        if not data:
            return QuizStats()
        return QuizStats(
            total_quizzes=int(data.get("total_quizzes", 0)),
            completed_quizzes=int(data.get("completed_quizzes", 0)),
            average_score=float(data.get("average_score", 0.0)),
            best_score=int(data.get("best_score", 0)),
            total_attempts=int(data.get("total_attempts", 0)),
        )


@dataclass(frozen=True, slots=True)
class Enrollment:
    """One student's relationship to one course.

    progress, status, grade and quiz_stats are derived by
    services/progress_service.py; callers never set them directly.
    """

    id: UUID
    student_id: UUID
    course_id: UUID
    teacher_id: UUID
    enrolled_at: int
    progress: int = 0
    status: EnrollmentStatus = "active"
    grade: str | None = None
    completed_lessons: int = 0
    total_lessons: int = 0
    last_activity: int | None = None
    completed_at: int | None = None
    lesson_progress: tuple[LessonProgress, ...] = ()
    quiz_stats: QuizStats = QuizStats()
    current_streak: int = 0
    total_time_spent: int = 0  # minutes
    certificate_id: str | None = None
    at_risk: bool = False  # set by the teacher, not derived

    def progress_for(self, lesson_id: UUID) -> LessonProgress | None:
        for entry in self.lesson_progress:
            if entry.lesson_id == lesson_id:
                return entry
        return None

    @staticmethod
    def new(
        *,
        student_id: UUID,
        course_id: UUID,
        teacher_id: UUID,
        enrolled_at: int,
        total_lessons: int = 0,
    ) -> Enrollment:
        return Enrollment(
            id=uuid4(),
            student_id=student_id,
            course_id=course_id,
            teacher_id=teacher_id,
            enrolled_at=enrolled_at,
            total_lessons=total_lessons,
            last_activity=enrolled_at,
        )
