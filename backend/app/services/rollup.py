"""Incremental statistics rollup after a completed attempt.

Averages are maintained with the running-mean update

    new_avg = round((old_avg * (n - 1) + value) / n)

so the full attempt history never has to be re-read. The update is a plain
read-modify-write on the ORM rows inside the caller's transaction; two
completions racing on the same quiz or user may lose an update.
"""

import math
from datetime import date, datetime, timedelta, timezone

from app.db.models import Quiz, User


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 → 3, -2.5 → -2)."""
    return int(math.floor(value + 0.5))


def incremental_average(old_average: float, new_count: int, value: float) -> int:
    """Fold *value* into an average that now covers *new_count* samples."""
    if new_count <= 0:
        raise ValueError("new_count must be positive")
    return round_half_up((old_average * (new_count - 1) + value) / new_count)


def as_utc(moment: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def next_streak(current: int, last_quiz_date: datetime | None, now: datetime) -> int:
    """Streak after completing a quiz at *now*.

    Same calendar day → unchanged; the day after the last quiz → +1;
    anything else (first quiz, or a gap) → 1.
    """
    today: date = as_utc(now).date()
    if last_quiz_date is None:
        return 1
    last_day = as_utc(last_quiz_date).date()
    if last_day == today:
        return current
    if last_day == today - timedelta(days=1):
        return current + 1
    return 1


def update_quiz_stats(quiz: Quiz, score: int, time_spent: int, passing_score: int) -> None:
    quiz.completed_attempts = (quiz.completed_attempts or 0) + 1
    n = quiz.completed_attempts
    quiz.average_score = incremental_average(quiz.average_score or 0, n, score)
    quiz.average_time_spent = incremental_average(quiz.average_time_spent or 0, n, time_spent)
    passed = 100 if score >= passing_score else 0
    quiz.pass_rate = incremental_average(quiz.pass_rate or 0, n, passed)


def update_user_stats(user: User, score: int, time_spent: int, now: datetime | None = None) -> None:
    now = now or datetime.now(timezone.utc)
    user.total_quizzes = (user.total_quizzes or 0) + 1
    user.completed_quizzes = (user.completed_quizzes or 0) + 1
    user.average_score = incremental_average(
        user.average_score or 0, user.completed_quizzes, score
    )
    user.total_time_spent = (user.total_time_spent or 0) + time_spent
    user.streak = next_streak(user.streak or 0, user.last_quiz_date, now)
    user.last_quiz_date = now


def apply_rollup(
    quiz: Quiz,
    user: User,
    score: int,
    time_spent: int,
    passing_score: int,
    now: datetime | None = None,
) -> None:
    """Fold one completed attempt into the quiz and user aggregates."""
    update_quiz_stats(quiz, score, time_spent, passing_score)
    update_user_stats(user, score, time_spent, now)
