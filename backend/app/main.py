"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from app.config import settings
from app.core.errors import register_error_handlers
from app.api import (
    analytics_router,
    attempts_router,
    auth_router,
    health_router,
    quizzes_router,
    users_router,
)
from app.services.cache import ResponseCache, build_store
from app.services.token_blacklist import TokenBlacklist

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 QuizHub backend starting (%s)…", settings.ENV)
    app.state.cache = ResponseCache(build_store(settings), enabled=settings.CACHE_ENABLED)
    app.state.token_blacklist = TokenBlacklist(
        build_store(settings, maxsize=settings.TOKEN_BLACKLIST_MAX_ENTRIES)
    )
    yield
    logger.info("✅ QuizHub backend shut down")


app = FastAPI(
    title="QuizHub API",
    description="Quiz authoring, attempts, scoring and learning analytics",
    version="1.0.0",
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

register_error_handlers(app)

# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(quizzes_router, prefix="/api/quizzes", tags=["Quizzes"])
app.include_router(attempts_router, prefix="/api/attempts", tags=["Attempts"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(analytics_router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/")
async def root():
    return {
        "name": "QuizHub API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
