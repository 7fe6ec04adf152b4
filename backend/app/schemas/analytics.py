"""Analytics, leaderboard and achievement schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import Pagination


# ── User analytics ────────────────────────────────────────────────────────────


class AnalyticsOverview(BaseModel):
    total_attempts: int
    average_score: int
    total_time_spent: int
    improvement_rate: int


class CategoryPerformance(BaseModel):
    category: str
    attempts: int
    total_score: int
    average_score: int


class DifficultyPerformance(BaseModel):
    average_score: int = 0
    attempts: int = 0


class DailyPerformance(BaseModel):
    date: str  # YYYY-MM-DD (UTC)
    average_score: int
    quiz_count: int


class Recommendation(BaseModel):
    type: str
    title: str
    description: str


class UserAnalyticsRead(BaseModel):
    """GET /api/analytics/user"""

    timeframe: str
    overview: AnalyticsOverview
    category_performance: list[CategoryPerformance] = []
    difficulty_performance: dict[str, DifficultyPerformance] = {}
    strengths: list[CategoryPerformance] = []
    weaknesses: list[CategoryPerformance] = []
    daily_performance: list[DailyPerformance] = []
    recommendations: list[Recommendation] = []


# ── Quiz analytics ────────────────────────────────────────────────────────────


class QuizRef(BaseModel):
    id: uuid.UUID
    title: str
    category: str
    difficulty: str


class QuizOverview(BaseModel):
    total_attempts: int
    average_score: int
    average_time: int
    pass_rate: int


class QuestionAnalytics(BaseModel):
    question_id: uuid.UUID
    question: str
    total_attempts: int
    correct_answers: int
    success_rate: int


class RecentAttempt(BaseModel):
    user: str
    score: int
    time_spent: int
    completed_at: datetime | None = None


class QuizAnalyticsRead(BaseModel):
    """GET /api/analytics/quiz/{id}"""

    quiz: QuizRef
    overview: QuizOverview
    score_distribution: dict[str, int]
    question_analytics: list[QuestionAnalytics] = []
    recent_attempts: list[RecentAttempt] = []


# ── Leaderboard ───────────────────────────────────────────────────────────────


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: uuid.UUID
    name: str
    email: str
    total_score: int
    total_attempts: int
    average_score: float
    total_points: int
    best_score: int


class LeaderboardRead(BaseModel):
    """GET /api/users/leaderboard"""

    count: int
    total: int
    pagination: Pagination
    data: list[LeaderboardEntry]


# ── Achievements ──────────────────────────────────────────────────────────────


class Achievement(BaseModel):
    id: str
    name: str
    description: str
    icon: str
    unlocked_at: datetime | None = None
    category: str


class AchievementsRead(BaseModel):
    """GET /api/users/achievements"""

    total_achievements: int = Field(default=0)
    achievements: list[Achievement] = []
