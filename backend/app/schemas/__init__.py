"""Pydantic schemas — re‑exported for convenience."""

from app.schemas.common import ErrorResponse, Pagination, SuccessResponse  # noqa: F401
from app.schemas.user import (  # noqa: F401
    AuthResponse,
    ProfileUpdate,
    UserCreate,
    UserLogin,
    UserRead,
)
from app.schemas.quiz import (  # noqa: F401
    Difficulty,
    QuizCreate,
    QuizListRead,
    QuizPublic,
    QuizRead,
    QuizSummary,
)
from app.schemas.attempt import (  # noqa: F401
    AttemptDetailRead,
    AttemptListRead,
    AttemptResult,
    AttemptStartRead,
    AttemptSubmit,
)
from app.schemas.analytics import (  # noqa: F401
    AchievementsRead,
    LeaderboardRead,
    QuizAnalyticsRead,
    UserAnalyticsRead,
)
