"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.config import settings

router = APIRouter()


@router.get("/health")
async def health():
    return {
        "status": "OK",
        "service": "quizhub-backend",
        "environment": settings.ENV,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
