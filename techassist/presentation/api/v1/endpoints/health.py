"""Health check endpoint — no dependencies, always available."""

from fastapi import APIRouter

from techassist.config import get_settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check() -> dict:
    """Returns the application status and the active analysis mode."""
    settings = get_settings()
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.app_env,
        "analysis_mode": settings.analysis_mode,
        "llm_configured": bool(settings.openrouter_api_key.strip()),
    }
