from fastapi import APIRouter

from carebook.core.config import settings

router = APIRouter()


@router.get("/health")
async def health_check():
    """Liveness probe."""
    return {
        "status": "OK",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }
