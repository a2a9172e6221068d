"""Health check endpoints."""

from fastapi import APIRouter, Request

from learnhub.config import get_settings


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - ready once the progress service is up."""
    settings = get_settings()
    database_ready = getattr(request.app.state, "progress_service", None) is not None
    return {
        "status": "ready" if database_ready else "degraded",
        "database": database_ready,
        "environment": settings.environment,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
