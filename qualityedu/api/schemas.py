"""Request and response bodies shared across routers.

Out models are built straight from the frozen domain dataclasses with
``model_validate(obj)`` (``from_attributes``).  Secrets on Principal
(password hash, reset code) have no field here, so they cannot leak
into a response.
"""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- accounts ---------------------------------------------------------------


class PrincipalOut(_Out):
    id: UUID
    kind: str
    email: str
    username: str | None
    first_name: str
    last_name: str
    display_name: str
    status: str
    phone: str
    bio: str
    institution: str
    department: str
    qualifications: str
    experience: str
    specialization: list[str]
    language_to_learn: str
    language_known: str
    profile_image: str
    created_at: int
    updated_at: int | None
    last_login_at: int | None
    approved_by: UUID | None
    approved_at: int | None
    rejection_reason: str | None


class RegisterIn(BaseModel):
    email: str = Field(min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8, max_length=128)
    confirm_password: str | None = None
    username: str | None = Field(default=None, max_length=50)
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    phone: str = ""
    bio: str = ""
    institution: str = ""
    department: str = ""
    qualifications: str = ""
    experience: str = ""
    specialization: list[str] = []
    language_to_learn: str = ""
    language_known: str = ""

    def profile(self) -> dict:
        return self.model_dump(
            exclude={"email", "password", "confirm_password", "username", "first_name", "last_name"},
            exclude_unset=True,
        )


class LoginIn(BaseModel):
    email: str
    password: str


class LoginOut(BaseModel):
    token: str
    token_type: str = "Bearer"
    expires_at: int
    user: PrincipalOut


class ForgotPasswordIn(BaseModel):
    email: str


class ResetPasswordIn(BaseModel):
    token: str
    new_password: str = Field(min_length=8, max_length=128)
    confirm_password: str | None = None


class ChangePasswordIn(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=128)
    confirm_password: str | None = None


class ProfileUpdateIn(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    bio: str | None = None
    institution: str | None = None
    department: str | None = None
    qualifications: str | None = None
    experience: str | None = None
    specialization: list[str] | None = None
    language_to_learn: str | None = None
    language_known: str | None = None
    profile_image: str | None = None


class RejectIn(BaseModel):
    reason: str = Field(min_length=1, max_length=1000)


# --- courses / modules / lessons -------------------------------------------


class CourseIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    category: str = ""
    level: str = ""
    description: str = ""
    instructor: str = ""
    instructor_title: str = ""
    image: str = ""
    price: float = Field(default=0.0, ge=0)
    estimated_duration: str = ""
    prerequisites: list[str] = []
    learning_objectives: list[str] = []
    status: str | None = None


class CourseUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    category: str | None = None
    level: str | None = None
    description: str | None = None
    instructor: str | None = None
    instructor_title: str | None = None
    image: str | None = None
    price: float | None = Field(default=None, ge=0)
    estimated_duration: str | None = None
    prerequisites: list[str] | None = None
    learning_objectives: list[str] | None = None
    status: str | None = None


class CourseOut(_Out):
    id: UUID
    teacher_id: UUID
    title: str
    category: str
    level: str
    description: str
    instructor: str
    instructor_title: str
    image: str
    price: float
    estimated_duration: str
    prerequisites: list[str]
    learning_objectives: list[str]
    status: str
    students: int
    modules: int
    created_at: int
    updated_at: int | None


class ModuleIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    duration: str = ""
    order: int | None = Field(default=None, ge=1)
    status: str | None = None
    cover_image: str = ""
    learning_objectives: list[str] = []
    prerequisites: list[str] = []


class ModuleUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    duration: str | None = None
    order: int | None = Field(default=None, ge=1)
    status: str | None = None
    cover_image: str | None = None
    learning_objectives: list[str] | None = None
    prerequisites: list[str] | None = None


class ModuleOut(_Out):
    id: UUID
    course_id: UUID
    teacher_id: UUID
    title: str
    order: int
    description: str
    duration: str
    status: str
    cover_image: str
    learning_objectives: list[str]
    prerequisites: list[str]
    total_lessons: int
    created_at: int
    updated_at: int | None


class ReorderIn(BaseModel):
    ids: list[UUID]


class StatusIn(BaseModel):
    status: str


class QuizIn(BaseModel):
    id: str | None = None
    question: str
    options: list[str] = []
    correct_answer: int | None = Field(default=None, ge=0)
    explanation: str = ""
    points: int = Field(default=1, ge=0)
    type: Literal["MULTIPLE_CHOICE", "TRUE_FALSE", "FILL_IN_BLANK", "SHORT_ANSWER"] = "MULTIPLE_CHOICE"


class QuizOut(_Out):
    id: str
    question: str
    options: list[str]
    correct_answer: int | None
    explanation: str
    points: int
    type: str


class LessonIn(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = ""
    video_url: str = ""
    duration: str = ""
    order: int | None = Field(default=None, ge=1)
    status: str | None = None
    quizzes: list[QuizIn] = []
    cover_image: str = ""
    transcript: str = ""
    tags: list[str] = []
    difficulty: str = ""
    language: str = ""


class LessonUpdateIn(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    video_url: str | None = None
    duration: str | None = None
    order: int | None = Field(default=None, ge=1)
    status: str | None = None
    quizzes: list[QuizIn] | None = None
    cover_image: str | None = None
    transcript: str | None = None
    tags: list[str] | None = None
    difficulty: str | None = None
    language: str | None = None


class LessonOut(_Out):
    id: UUID
    module_id: UUID
    course_id: UUID
    teacher_id: UUID
    title: str
    order: int
    description: str
    video_url: str
    duration: str
    status: str
    quizzes: list[QuizOut]
    cover_image: str
    transcript: str
    tags: list[str]
    difficulty: str
    language: str
    video_thumbnail: str | None
    views: int
    average_rating: float
    reviewed_by: UUID | None
    rejection_reason: str | None
    created_at: int
    updated_at: int | None


class ModuleOutline(BaseModel):
    module: ModuleOut
    lessons: list[LessonOut]


class CourseOutlineOut(BaseModel):
    course: CourseOut
    modules: list[ModuleOutline]


class LessonStatsOut(_Out):
    total_lessons: int
    published_lessons: int
    draft_lessons: int
    total_views: int
    average_rating: float
    total_quizzes: int
    most_popular: LessonOut | None
    recent: list[LessonOut]


# --- enrollment ---------------------------------------------------------------


class LessonProgressOut(_Out):
    lesson_id: UUID
    completed: bool
    progress: int
    started_at: int | None
    completed_at: int | None
    quiz_score: int
    attempts: int
    time_spent: int


class QuizStatsOut(_Out):
    total_quizzes: int
    completed_quizzes: int
    average_score: float
    best_score: int
    total_attempts: int


class EnrollmentOut(_Out):
    id: UUID
    student_id: UUID
    course_id: UUID
    teacher_id: UUID
    enrolled_at: int
    progress: int
    status: str
    grade: str | None
    completed_lessons: int
    total_lessons: int
    last_activity: int | None
    completed_at: int | None
    lesson_progress: list[LessonProgressOut]
    quiz_stats: QuizStatsOut
    current_streak: int
    total_time_spent: int
    certificate_id: str | None
    at_risk: bool


class CompleteLessonIn(BaseModel):
    quiz_score: int | None = Field(default=None, ge=0, le=100)
    time_spent: int = Field(default=0, ge=0)


class QuizSubmitIn(BaseModel):
    score: int = Field(ge=0, le=100)


class AtRiskIn(BaseModel):
    at_risk: bool


class StudentStatsOut(_Out):
    courses_enrolled: int
    courses_completed: int
    total_lessons: int
    completed_lessons: int
    average_score: float
    current_streak: int
    total_time_spent: int


class ActivityOut(_Out):
    kind: str
    course_id: UUID
    lesson_id: UUID
    timestamp: int
    score: int | None


class TeacherStudentOut(_Out):
    student: PrincipalOut
    enrollments: list[EnrollmentOut]


class SupervisorStatsOut(_Out):
    teachers_supervised: int
    courses_overseen: int
    students_impacted: int
    completed_reviews: int
    pending_reviews: int
    approval_rate: float
