"""Badges unlocked by a user's completed attempts."""

from datetime import datetime, timezone

from sqlalchemy.orm import Session, joinedload

from app.db.models import Attempt, User
from app.schemas.analytics import Achievement, AchievementsRead
from app.services.rollup import as_utc

STREAK_DAYS = 7
MASTERY_MIN_ATTEMPTS = 5
MASTERY_MIN_AVERAGE = 90
VETERAN_ATTEMPTS = 50


def _slug(category: str) -> str:
    return "_".join(category.lower().split())


def compute_achievements(
    attempts: list[Attempt], user: User, now: datetime | None = None
) -> list[Achievement]:
    """*attempts* must be the user's completed attempts, oldest first."""
    now = now or datetime.now(timezone.utc)
    unlocked: list[Achievement] = []

    if attempts:
        unlocked.append(
            Achievement(
                id="first_quiz",
                name="Getting Started",
                description="Complete your first quiz",
                icon="🎯",
                unlocked_at=attempts[0].completed_at,
                category="milestone",
            )
        )

    if (user.streak or 0) >= STREAK_DAYS:
        unlocked.append(
            Achievement(
                id="week_streak",
                name="Week Warrior",
                description="Complete quizzes for 7 consecutive days",
                icon="🔥",
                unlocked_at=user.last_quiz_date,
                category="streak",
            )
        )

    perfect = [a for a in attempts if a.score == 100]
    if perfect:
        unlocked.append(
            Achievement(
                id="perfect_score",
                name="Perfectionist",
                description="Get a perfect score on any quiz",
                icon="💯",
                unlocked_at=perfect[0].completed_at,
                category="performance",
            )
        )

    by_category: dict[str, list[int]] = {}
    for a in attempts:
        by_category.setdefault(a.quiz.category, []).append(a.score)
    for category, scores in by_category.items():
        if len(scores) >= MASTERY_MIN_ATTEMPTS and sum(scores) / len(scores) >= MASTERY_MIN_AVERAGE:
            unlocked.append(
                Achievement(
                    id=f"master_{_slug(category)}",
                    name=f"{category} Master",
                    description=f"Maintain 90%+ average in {category} quizzes",
                    icon="🎓",
                    unlocked_at=now,
                    category="mastery",
                )
            )

    if len(attempts) >= VETERAN_ATTEMPTS:
        unlocked.append(
            Achievement(
                id="quiz_veteran",
                name="Quiz Veteran",
                description="Complete 50 quizzes",
                icon="⭐",
                unlocked_at=attempts[VETERAN_ATTEMPTS - 1].completed_at,
                category="volume",
            )
        )

    epoch = datetime.min.replace(tzinfo=timezone.utc)
    unlocked.sort(
        key=lambda a: as_utc(a.unlocked_at) if a.unlocked_at else epoch, reverse=True
    )
    return unlocked


def achievements_for(db: Session, user: User) -> AchievementsRead:
    attempts = (
        db.query(Attempt)
        .options(joinedload(Attempt.quiz))
        .filter(Attempt.user_id == user.id, Attempt.completed.is_(True))
        .order_by(Attempt.completed_at.asc())
        .all()
    )
    achievements = compute_achievements(attempts, user)
    return AchievementsRead(total_achievements=len(achievements), achievements=achievements)
