"""Unit tests for the incremental stats rollup."""

from datetime import datetime, timedelta, timezone

import pytest

from app.db.models import Quiz, User
from app.services.rollup import (
    apply_rollup,
    incremental_average,
    next_streak,
    round_half_up,
)

NOW = datetime(2024, 3, 10, 15, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, expected",
    [(2.5, 3), (2.4, 2), (49.5, 50), (66.666, 67), (0, 0)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_incremental_average_tracks_rounded_mean():
    scores = [50, 100, 75, 80]
    average = 0
    for n, score in enumerate(scores, start=1):
        average = incremental_average(average, n, score)
    assert average == 76  # mean 76.25


def test_incremental_average_rejects_empty_count():
    with pytest.raises(ValueError):
        incremental_average(10, 0, 10)


def test_streak_first_quiz():
    assert next_streak(0, None, NOW) == 1


def test_streak_same_day_unchanged():
    assert next_streak(4, NOW - timedelta(hours=3), NOW) == 4


def test_streak_next_day_increments():
    assert next_streak(4, NOW - timedelta(days=1), NOW) == 5


def test_streak_gap_resets():
    assert next_streak(4, NOW - timedelta(days=3), NOW) == 1


def test_streak_treats_naive_dates_as_utc():
    yesterday = (NOW - timedelta(days=1)).replace(tzinfo=None)
    assert next_streak(2, yesterday, NOW) == 3


def test_apply_rollup_updates_quiz_and_user():
    quiz = Quiz(completed_attempts=1, average_score=80, average_time_spent=10, pass_rate=100)
    user = User(
        total_quizzes=1,
        completed_quizzes=1,
        average_score=80,
        total_time_spent=10,
        streak=1,
        last_quiz_date=NOW - timedelta(days=1),
    )

    apply_rollup(quiz, user, score=40, time_spent=5, passing_score=60, now=NOW)

    assert quiz.completed_attempts == 2
    assert quiz.average_score == 60
    assert quiz.average_time_spent == 8  # 7.5 rounds up
    assert quiz.pass_rate == 50

    assert user.total_quizzes == 2
    assert user.completed_quizzes == 2
    assert user.average_score == 60
    assert user.total_time_spent == 15
    assert user.streak == 2
    assert user.last_quiz_date == NOW
