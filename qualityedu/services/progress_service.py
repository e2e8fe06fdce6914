"""Enrollment progress engine.

Pure functions over frozen ``Enrollment`` values: every call returns a
new Enrollment with its aggregates (progress, quiz stats, grade, status)
recomputed, and the caller persists it.  Nothing here touches a repo.

Invariant after every function that returns an Enrollment:

    progress == 0                                  if total_lessons == 0
    progress == completed_lessons * 100 // total_lessons   otherwise

``completed_lessons`` can never exceed ``total_lessons``: total is the
lesson count snapshotted at enrollment, and if a student completes more
lessons than that (lessons added after enrolling) total is raised to
match rather than letting progress pass 100.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from uuid import UUID

from qualityedu.models.enrollment import Enrollment, LessonProgress, QuizStats

SECONDS_PER_DAY = 86400

# Evaluated top-down; first threshold the score reaches wins.
GRADE_THRESHOLDS: tuple[tuple[float, str], ...] = (
    (95, "A+"),
    (90, "A"),
    (85, "B+"),
    (80, "B"),
    (75, "C+"),
    (70, "C"),
    (65, "D+"),
    (60, "D"),
)
FAILING_GRADE = "F"


def compute_progress(completed_lessons: int, total_lessons: int) -> int:
    if total_lessons <= 0:
        return 0
    return completed_lessons * 100 // total_lessons


def derive_grade(average_score: float) -> str | None:
    """Letter grade for a quiz average; None when there is no positive average."""
    if average_score <= 0:
        return None
    for threshold, letter in GRADE_THRESHOLDS:
        if average_score >= threshold:
            return letter
    return FAILING_GRADE


def recalculate_quiz_stats(enrollment: Enrollment) -> QuizStats:
    attempted = [lp for lp in enrollment.lesson_progress if lp.attempts > 0]
    if not attempted:
        return QuizStats()
    scores = [lp.quiz_score for lp in attempted]
    return QuizStats(
        total_quizzes=len(attempted),
        completed_quizzes=len(attempted),
        average_score=round(sum(scores) / len(scores), 2),
        best_score=max(scores),
        total_attempts=sum(lp.attempts for lp in enrollment.lesson_progress),
    )


def derive_status(enrollment: Enrollment, *, now: int) -> Enrollment:
    """Apply status rules to an enrollment whose progress is current.

    dropped is sticky.  progress 100 -> completed (completed_at set once).
    Otherwise at-risk while the teacher flag is on, else active.
    """
    if enrollment.status == "dropped":
        return enrollment
    if enrollment.progress >= 100:
        return replace(
            enrollment,
            status="completed",
            completed_at=enrollment.completed_at or now,
        )
    return replace(enrollment, status="at-risk" if enrollment.at_risk else "active")


def refresh_aggregates(enrollment: Enrollment, *, now: int) -> Enrollment:
    total = max(enrollment.total_lessons, enrollment.completed_lessons)
    stats = recalculate_quiz_stats(enrollment)
    grade = derive_grade(stats.average_score) if stats.average_score > 0 else enrollment.grade

    refreshed = replace(
        enrollment,
        total_lessons=total,
        progress=compute_progress(enrollment.completed_lessons, total),
        quiz_stats=stats,
        grade=grade,
    )
    refreshed = derive_status(refreshed, now=now)

    if refreshed.status == "completed" and refreshed.certificate_id is None:
        refreshed = replace(refreshed, certificate_id=str(uuid.uuid4()))
    return refreshed


def advance_streak(current_streak: int, last_activity: int | None, now: int) -> int:
    """Daily streak on UTC calendar days."""
    if current_streak <= 0 or last_activity is None:
        return 1
    gap = now // SECONDS_PER_DAY - last_activity // SECONDS_PER_DAY
    if gap <= 0:
        return current_streak
    if gap == 1:
        return current_streak + 1
    return 1


def _touch(enrollment: Enrollment, now: int) -> Enrollment:
    return replace(
        enrollment,
        current_streak=advance_streak(
            enrollment.current_streak, enrollment.last_activity, now
        ),
        last_activity=now,
    )


def _with_entry(enrollment: Enrollment, entry: LessonProgress) -> Enrollment:
    entries = list(enrollment.lesson_progress)
    for i, existing in enumerate(entries):
        if existing.lesson_id == entry.lesson_id:
            entries[i] = entry
            break
    else:
        entries.append(entry)
    return replace(enrollment, lesson_progress=tuple(entries))


def _entry_for(enrollment: Enrollment, lesson_id: UUID, now: int) -> LessonProgress:
    existing = enrollment.progress_for(lesson_id)
    if existing is not None:
        return existing
    return LessonProgress(lesson_id=lesson_id, started_at=now)


def record_lesson_start(enrollment: Enrollment, lesson_id: UUID, *, now: int) -> Enrollment:
    entry = _entry_for(enrollment, lesson_id, now)
    if entry.started_at is None:
        entry = replace(entry, started_at=now)
    updated = _with_entry(_touch(enrollment, now), entry)
    return refresh_aggregates(updated, now=now)


def record_lesson_completion(
    enrollment: Enrollment,
    lesson_id: UUID,
    quiz_score: int | None = None,
    time_spent: int = 0,
    *,
    now: int,
) -> Enrollment:
    """Mark a lesson complete, updating the entry in place when it exists.

    completed_lessons goes up only on the first incomplete -> complete
    transition, so repeating the call leaves count and progress unchanged.
    """
    entry = _entry_for(enrollment, lesson_id, now)
    first_completion = not entry.completed

    entry = replace(
        entry,
        completed=True,
        progress=100,
        completed_at=entry.completed_at or now,
        time_spent=entry.time_spent + max(time_spent, 0),
    )
    if quiz_score is not None:
        entry = replace(entry, quiz_score=quiz_score, attempts=entry.attempts + 1)

    updated = _with_entry(_touch(enrollment, now), entry)
    updated = replace(
        updated,
        completed_lessons=updated.completed_lessons + (1 if first_completion else 0),
        total_time_spent=updated.total_time_spent + max(time_spent, 0),
    )
    return refresh_aggregates(updated, now=now)


def record_quiz_attempt(
    enrollment: Enrollment, lesson_id: UUID, score: int, *, now: int
) -> Enrollment:
    entry = _entry_for(enrollment, lesson_id, now)
    entry = replace(entry, quiz_score=score, attempts=entry.attempts + 1)
    updated = _with_entry(_touch(enrollment, now), entry)
    return refresh_aggregates(updated, now=now)


def set_at_risk(enrollment: Enrollment, flagged: bool, *, now: int) -> Enrollment:
    return refresh_aggregates(replace(enrollment, at_risk=flagged), now=now)


def drop(enrollment: Enrollment, *, now: int) -> Enrollment:
    return replace(enrollment, status="dropped", last_activity=now)
