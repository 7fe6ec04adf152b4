"""API route package — imports all routers for main.py."""

from app.api.health import router as health_router  # noqa: F401
from app.api.auth import router as auth_router  # noqa: F401
from app.api.quizzes import router as quizzes_router  # noqa: F401
from app.api.attempts import router as attempts_router  # noqa: F401
from app.api.users import router as users_router  # noqa: F401
from app.api.analytics import router as analytics_router  # noqa: F401
