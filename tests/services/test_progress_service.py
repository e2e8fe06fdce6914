"""Progress engine: aggregates recomputed after every lesson event."""

from __future__ import annotations

from uuid import uuid4

import pytest

from qualityedu.models.enrollment import Enrollment
from qualityedu.services import progress_service as ps

DAY = ps.SECONDS_PER_DAY
NOW = 1_700_000_000 - (1_700_000_000 % DAY) + 3600  # 01:00 UTC on some day


def _enrollment(total: int = 4) -> Enrollment:
    return Enrollment.new(
        student_id=uuid4(),
        course_id=uuid4(),
        teacher_id=uuid4(),
        enrolled_at=NOW - DAY,
        total_lessons=total,
    )


def _assert_progress_invariant(e: Enrollment) -> None:
    if e.total_lessons == 0:
        assert e.progress == 0
    else:
        assert e.progress == e.completed_lessons * 100 // e.total_lessons
    assert e.completed_lessons <= e.total_lessons


# ---- pure helpers ----


@pytest.mark.parametrize(
    "completed,total,expected",
    [(0, 0, 0), (3, 0, 0), (0, 4, 0), (1, 3, 33), (2, 3, 66), (4, 4, 100)],
)
def test_compute_progress(completed: int, total: int, expected: int) -> None:
    assert ps.compute_progress(completed, total) == expected


@pytest.mark.parametrize(
    "score,grade",
    [
        (100, "A+"),
        (95, "A+"),
        (94.99, "A"),
        (90, "A"),
        (85, "B+"),
        (80, "B"),
        (75, "C+"),
        (70, "C"),
        (65, "D+"),
        (60, "D"),
        (59.9, "F"),
        (1, "F"),
        (0, None),
    ],
)
def test_derive_grade(score: float, grade: str | None) -> None:
    assert ps.derive_grade(score) == grade


@pytest.mark.parametrize(
    "streak,last,now,expected",
    [
        (0, None, NOW, 1),
        (3, None, NOW, 1),
        (3, NOW - 600, NOW, 3),  # same UTC day
        (3, NOW - DAY, NOW, 4),  # yesterday
        (3, NOW - 2 * DAY, NOW, 1),  # gap
    ],
)
def test_advance_streak(streak: int, last: int | None, now: int, expected: int) -> None:
    assert ps.advance_streak(streak, last, now) == expected


def test_streak_uses_calendar_days_not_24h() -> None:
    late = NOW - 3600 - 60  # 23:59 the previous day
    assert ps.advance_streak(2, late, NOW) == 3


# ---- lesson events ----


def test_start_records_entry_without_progress() -> None:
    lesson = uuid4()
    e = ps.record_lesson_start(_enrollment(), lesson, now=NOW)
    entry = e.progress_for(lesson)
    assert entry is not None and entry.started_at == NOW and not entry.completed
    assert e.completed_lessons == 0
    assert e.last_activity == NOW
    _assert_progress_invariant(e)


def test_start_twice_keeps_original_start_time() -> None:
    lesson = uuid4()
    e = ps.record_lesson_start(_enrollment(), lesson, now=NOW)
    e = ps.record_lesson_start(e, lesson, now=NOW + 50)
    assert e.progress_for(lesson).started_at == NOW  # type: ignore[union-attr]
    assert len(e.lesson_progress) == 1


def test_completion_updates_progress() -> None:
    e = ps.record_lesson_completion(_enrollment(4), uuid4(), now=NOW)
    assert e.completed_lessons == 1
    assert e.progress == 25
    assert e.status == "active"
    _assert_progress_invariant(e)


def test_completion_is_idempotent_per_lesson() -> None:
    lesson = uuid4()
    e = ps.record_lesson_completion(_enrollment(4), lesson, time_spent=5, now=NOW)
    e = ps.record_lesson_completion(e, lesson, time_spent=5, now=NOW + 10)
    assert e.completed_lessons == 1
    assert e.progress == 25
    assert len(e.lesson_progress) == 1
    assert e.progress_for(lesson).completed_at == NOW  # type: ignore[union-attr]
    assert e.total_time_spent == 10


def test_completing_started_lesson_updates_same_entry() -> None:
    lesson = uuid4()
    e = ps.record_lesson_start(_enrollment(), lesson, now=NOW)
    e = ps.record_lesson_completion(e, lesson, now=NOW + 30)
    assert len(e.lesson_progress) == 1
    entry = e.progress_for(lesson)
    assert entry is not None
    assert entry.started_at == NOW and entry.completed_at == NOW + 30
    assert entry.progress == 100


def test_all_lessons_complete_marks_course_completed() -> None:
    e = _enrollment(2)
    e = ps.record_lesson_completion(e, uuid4(), quiz_score=90, now=NOW)
    e = ps.record_lesson_completion(e, uuid4(), quiz_score=100, now=NOW + 5)
    assert e.progress == 100
    assert e.status == "completed"
    assert e.completed_at == NOW + 5
    assert e.certificate_id is not None
    assert e.grade == "A+"  # average 95


def test_completed_at_and_certificate_set_once() -> None:
    e = _enrollment(1)
    e = ps.record_lesson_completion(e, uuid4(), now=NOW)
    cert = e.certificate_id
    e = ps.record_quiz_attempt(e, e.lesson_progress[0].lesson_id, 50, now=NOW + 100)
    assert e.completed_at == NOW
    assert e.certificate_id == cert


def test_extra_lessons_raise_total_instead_of_exceeding_100() -> None:
    e = _enrollment(1)
    e = ps.record_lesson_completion(e, uuid4(), now=NOW)
    e = ps.record_lesson_completion(e, uuid4(), now=NOW + 1)
    assert e.total_lessons == 2
    assert e.progress == 100
    _assert_progress_invariant(e)


def test_zero_total_lessons_progress_is_zero() -> None:
    e = ps.record_lesson_start(_enrollment(0), uuid4(), now=NOW)
    assert e.progress == 0
    assert e.status == "active"


# ---- quizzes ----


def test_quiz_stats_use_latest_attempt_per_lesson() -> None:
    a, b = uuid4(), uuid4()
    e = _enrollment(4)
    e = ps.record_quiz_attempt(e, a, 60, now=NOW)
    e = ps.record_quiz_attempt(e, a, 80, now=NOW + 1)
    e = ps.record_quiz_attempt(e, b, 100, now=NOW + 2)

    stats = e.quiz_stats
    assert stats.total_quizzes == 2
    assert stats.completed_quizzes == 2
    assert stats.total_attempts == 3
    assert stats.best_score == 100
    assert stats.average_score == 90.0
    assert e.grade == "A"


def test_quiz_attempt_does_not_complete_lesson() -> None:
    e = ps.record_quiz_attempt(_enrollment(2), uuid4(), 70, now=NOW)
    assert e.completed_lessons == 0
    assert e.progress == 0


def test_zero_scores_leave_grade_unset() -> None:
    e = ps.record_quiz_attempt(_enrollment(2), uuid4(), 0, now=NOW)
    assert e.quiz_stats.total_attempts == 1
    assert e.grade is None


# ---- status ----


def test_at_risk_flag_drives_status() -> None:
    e = ps.set_at_risk(_enrollment(), True, now=NOW)
    assert e.status == "at-risk"
    e = ps.record_lesson_completion(e, uuid4(), now=NOW)
    assert e.status == "at-risk"
    e = ps.set_at_risk(e, False, now=NOW)
    assert e.status == "active"


def test_completion_wins_over_at_risk() -> None:
    e = ps.set_at_risk(_enrollment(1), True, now=NOW)
    e = ps.record_lesson_completion(e, uuid4(), now=NOW)
    assert e.status == "completed"


def test_dropped_is_sticky() -> None:
    e = ps.drop(_enrollment(1), now=NOW)
    assert e.status == "dropped"
    e = ps.record_lesson_completion(e, uuid4(), now=NOW + 1)
    assert e.status == "dropped"
    assert e.completed_at is None
