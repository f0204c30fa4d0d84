from fastapi import APIRouter

from app.core.config import get_settings
from app.core.timezone_utils import utcnow

router = APIRouter()


@router.get("/health")
def health_check():
    """Liveness probe."""
    settings = get_settings()
    return {
        "status": "UP",
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "timestamp": utcnow().isoformat(),
    }
