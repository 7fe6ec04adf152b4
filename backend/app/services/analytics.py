"""Read-only reporting over completed attempts.

The arithmetic lives in small pure functions that work on plain records;
the ``*_for`` / ``build_*`` entry points load rows through SQLAlchemy and
feed them in.

Leaderboard grouping is done here rather than in the database: rows are
grouped by user, reduced to sum/avg/max, ranked, then paginated.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy.orm import Session, joinedload, selectinload

from app.config import settings
from app.core.errors import ForbiddenError
from app.db.lookups import get_quiz
from app.db.models import Attempt, Quiz, User
from app.schemas.analytics import (
    AnalyticsOverview,
    CategoryPerformance,
    DailyPerformance,
    DifficultyPerformance,
    LeaderboardEntry,
    LeaderboardRead,
    QuestionAnalytics,
    QuizAnalyticsRead,
    QuizOverview,
    QuizRef,
    RecentAttempt,
    Recommendation,
    UserAnalyticsRead,
)
from app.schemas.common import Pagination
from app.services.cache import ResponseCache
from app.services.rollup import as_utc, round_half_up

logger = logging.getLogger(__name__)

TIMEFRAME_DAYS = {"week": 7, "month": 30, "year": 365}
SCORE_BUCKETS = [("0-20", 20), ("21-40", 40), ("41-60", 60), ("61-80", 80), ("81-100", 100)]


@dataclass
class AttemptRecord:
    """Flattened view of one completed attempt."""

    category: str
    difficulty: str
    score: int
    time_spent: int
    completed_at: datetime


def window_start(timeframe: str, now: datetime) -> datetime | None:
    """Start of the rolling window, or None for an unknown / ``all`` timeframe."""
    days = TIMEFRAME_DAYS.get(timeframe)
    if days is None:
        return None
    return now - timedelta(days=days)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


# ── User analytics ────────────────────────────────────────────────────────────


def improvement_rate(scores: list[int]) -> int:
    """Percent change from the first half's mean to the second half's.

    *scores* must be in chronological order. With fewer than two scores, or a
    first half averaging zero, there is nothing to compare and 0 is returned.
    """
    if len(scores) < 2:
        return 0
    mid = len(scores) // 2
    first, second = _mean(scores[:mid]), _mean(scores[mid:])
    if first == 0:
        return 0
    return round_half_up((second - first) / first * 100)


def category_performance(records: Iterable[AttemptRecord]) -> list[CategoryPerformance]:
    """Per-category averages, best first."""
    totals: dict[str, list[int]] = {}
    for r in records:
        totals.setdefault(r.category, []).append(r.score)
    rows = [
        CategoryPerformance(
            category=category,
            attempts=len(scores),
            total_score=sum(scores),
            average_score=round_half_up(_mean(scores)),
        )
        for category, scores in totals.items()
    ]
    return sorted(rows, key=lambda c: c.average_score, reverse=True)


def difficulty_performance(records: Iterable[AttemptRecord]) -> dict[str, DifficultyPerformance]:
    buckets: dict[str, list[int]] = {"easy": [], "medium": [], "hard": []}
    for r in records:
        buckets.setdefault(r.difficulty, []).append(r.score)
    return {
        level: DifficultyPerformance(
            average_score=round_half_up(_mean(scores)) if scores else 0,
            attempts=len(scores),
        )
        for level, scores in buckets.items()
    }


def daily_performance(records: Iterable[AttemptRecord]) -> list[DailyPerformance]:
    by_day: dict[str, list[int]] = defaultdict(list)
    for r in records:
        by_day[as_utc(r.completed_at).date().isoformat()].append(r.score)
    return [
        DailyPerformance(date=day, average_score=round_half_up(_mean(scores)), quiz_count=len(scores))
        for day, scores in sorted(by_day.items())
    ]


def recommendations(
    categories: list[CategoryPerformance], average_score: int, streak: int
) -> list[Recommendation]:
    recs: list[Recommendation] = []
    weak = [c for c in categories if c.average_score < settings.WEAK_CATEGORY_THRESHOLD]
    if weak:
        recs.append(
            Recommendation(
                type="improvement",
                title="Focus on weak subjects",
                description=(
                    f"Consider practicing more {weak[0].category} quizzes to improve "
                    f"your score from {weak[0].average_score}%"
                ),
            )
        )
    if average_score > 80:
        recs.append(
            Recommendation(
                type="challenge",
                title="Try harder difficulty",
                description=(
                    "Your performance is excellent! Consider challenging yourself "
                    "with harder difficulty quizzes."
                ),
            )
        )
    if streak < 3:
        recs.append(
            Recommendation(
                type="consistency",
                title="Build a learning streak",
                description=(
                    "Try to take quizzes regularly to build knowledge retention "
                    "and improve your learning streak."
                ),
            )
        )
    return recs


def summarize_user(
    records: list[AttemptRecord], timeframe: str, average_score: int, streak: int
) -> UserAnalyticsRead:
    records = sorted(records, key=lambda r: as_utc(r.completed_at))
    scores = [r.score for r in records]
    categories = category_performance(records)
    return UserAnalyticsRead(
        timeframe=timeframe,
        overview=AnalyticsOverview(
            total_attempts=len(records),
            average_score=round_half_up(_mean(scores)) if scores else 0,
            total_time_spent=sum(r.time_spent for r in records),
            improvement_rate=improvement_rate(scores),
        ),
        category_performance=categories,
        difficulty_performance=difficulty_performance(records),
        strengths=categories[:3],
        weaknesses=list(reversed(categories[-3:])),
        daily_performance=daily_performance(records),
        recommendations=recommendations(categories, average_score, streak),
    )


def user_analytics_for(
    db: Session,
    user: User,
    timeframe: str,
    cache: ResponseCache,
    now: datetime | None = None,
) -> UserAnalyticsRead:
    if timeframe not in TIMEFRAME_DAYS:
        timeframe = "month"
    params = {"user": str(user.id), "timeframe": timeframe}
    cached = cache.get("analytics:user", params)
    if cached is not None:
        return UserAnalyticsRead.model_validate(cached)

    now = now or datetime.now(timezone.utc)
    rows = (
        db.query(Attempt)
        .options(joinedload(Attempt.quiz))
        .filter(
            Attempt.user_id == user.id,
            Attempt.completed.is_(True),
            Attempt.completed_at >= window_start(timeframe, now),
        )
        .all()
    )
    records = [
        AttemptRecord(
            category=a.quiz.category,
            difficulty=a.quiz.difficulty.value,
            score=a.score,
            time_spent=a.time_spent,
            completed_at=a.completed_at,
        )
        for a in rows
    ]
    result = summarize_user(records, timeframe, user.average_score or 0, user.streak or 0)
    cache.set("analytics:user", params, result.model_dump(mode="json"), settings.ANALYTICS_CACHE_TTL_SECONDS)
    return result


# ── Quiz analytics ────────────────────────────────────────────────────────────


def score_distribution(scores: Iterable[int]) -> dict[str, int]:
    """Histogram over five buckets with inclusive upper bounds."""
    dist = {label: 0 for label, _ in SCORE_BUCKETS}
    for score in scores:
        for label, upper in SCORE_BUCKETS:
            if score <= upper:
                dist[label] += 1
                break
        else:
            dist[SCORE_BUCKETS[-1][0]] += 1
    return dist


def _truncate(text: str, width: int = 50) -> str:
    return text[:width] + "..."


def question_analytics(quiz: Quiz, attempts: list[Attempt]) -> list[QuestionAnalytics]:
    """Success rate per question, hardest first."""
    rows = []
    for question in quiz.questions:
        answered = 0
        correct = 0
        for attempt in attempts:
            match = next((a for a in attempt.answers if a.question_id == question.id), None)
            if match is None:
                continue
            answered += 1
            if match.is_correct:
                correct += 1
        rows.append(
            QuestionAnalytics(
                question_id=question.id,
                question=_truncate(question.text),
                total_attempts=answered,
                correct_answers=correct,
                success_rate=round_half_up(correct / answered * 100) if answered else 0,
            )
        )
    return sorted(rows, key=lambda q: q.success_rate)


def quiz_analytics_for(db: Session, quiz_id: str, requester: User) -> QuizAnalyticsRead:
    quiz = get_quiz(db, quiz_id)
    if quiz.creator_id != requester.id and not requester.is_admin:
        raise ForbiddenError("Not authorized to view quiz analytics")

    attempts = (
        db.query(Attempt)
        .options(joinedload(Attempt.user), selectinload(Attempt.answers))
        .filter(Attempt.quiz_id == quiz.id, Attempt.completed.is_(True))
        .order_by(Attempt.completed_at.asc())
        .all()
    )
    scores = [a.score for a in attempts]
    total = len(attempts)
    passing = quiz.passing_score if quiz.passing_score is not None else settings.DEFAULT_PASSING_SCORE

    return QuizAnalyticsRead(
        quiz=QuizRef(
            id=quiz.id,
            title=quiz.title,
            category=quiz.category,
            difficulty=quiz.difficulty.value,
        ),
        overview=QuizOverview(
            total_attempts=total,
            average_score=round_half_up(_mean(scores)) if total else 0,
            average_time=round_half_up(_mean([a.time_spent for a in attempts])) if total else 0,
            pass_rate=(
                round_half_up(sum(1 for s in scores if s >= passing) / total * 100) if total else 0
            ),
        ),
        score_distribution=score_distribution(scores),
        question_analytics=question_analytics(quiz, attempts),
        recent_attempts=[
            RecentAttempt(
                user=a.user.name,
                score=a.score,
                time_spent=a.time_spent,
                completed_at=a.completed_at,
            )
            for a in reversed(attempts[-10:])
        ],
    )


# ── Leaderboard ───────────────────────────────────────────────────────────────


@dataclass
class LeaderboardRow:
    user_id: uuid.UUID
    name: str
    email: str
    score: int
    earned_points: int


def rank_users(rows: Iterable[LeaderboardRow]) -> list[LeaderboardEntry]:
    """Group per user and order by average score, then total earned points.

    Ranks are positional over the full ordering (1-based), so pagination only
    has to slice the result.
    """
    groups: dict[uuid.UUID, list[LeaderboardRow]] = {}
    for row in rows:
        groups.setdefault(row.user_id, []).append(row)

    entries = []
    for user_id, items in groups.items():
        scores = [i.score for i in items]
        entries.append(
            LeaderboardEntry(
                rank=0,
                user_id=user_id,
                name=items[0].name,
                email=items[0].email,
                total_score=sum(scores),
                total_attempts=len(items),
                average_score=round(_mean(scores), 2),
                total_points=sum(i.earned_points for i in items),
                best_score=max(scores),
            )
        )
    entries.sort(key=lambda e: (-e.average_score, -e.total_points))
    for position, entry in enumerate(entries, start=1):
        entry.rank = position
    return entries


def build_leaderboard(
    db: Session,
    timeframe: str = "all",
    category: str | None = None,
    page: int = 1,
    limit: int = 20,
    now: datetime | None = None,
) -> LeaderboardRead:
    now = now or datetime.now(timezone.utc)
    query = (
        db.query(
            Attempt.user_id,
            User.name,
            User.email,
            Attempt.score,
            Attempt.earned_points,
        )
        .join(User, User.id == Attempt.user_id)
        .filter(Attempt.completed.is_(True))
    )
    start = window_start(timeframe, now)
    if start is not None:
        query = query.filter(Attempt.completed_at >= start)
    if category:
        query = query.join(Quiz, Quiz.id == Attempt.quiz_id).filter(Quiz.category == category)

    ranked = rank_users(LeaderboardRow(*row) for row in query.all())
    logger.debug("Leaderboard ranked %d users (timeframe=%s, category=%s)", len(ranked), timeframe, category)
    offset = (page - 1) * limit
    page_rows = ranked[offset : offset + limit]
    return LeaderboardRead(
        count=len(page_rows),
        total=len(ranked),
        pagination=Pagination.build(page, limit, len(ranked)),
        data=page_rows,
    )
