from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from electronics_store.config import get_settings
from electronics_store.database import engine
from electronics_store.utils.cache import cache_service

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "",
    summary="Health check",
    description="Basic health check endpoint."
)
def health_check():
    """Simple health check."""
    return {"status": "ok", "service": get_settings().SERVICE_NAME}


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the database and the Redis cache are reachable."
)
def readiness_check():
    """
    Readiness check for all dependencies.

    Returns status of:
    - Database connection
    - Redis connection (only needed for live delivery provider tokens)
    """
    checks = {
        "database": False,
        "redis": False
    }

    # Check database
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            checks["database"] = True
    except SQLAlchemyError as e:
        checks["database_error"] = str(e)

    # Check Redis
    checks["redis"] = cache_service.ping()

    return {
        "status": "ready" if checks["database"] else "not_ready",
        "checks": checks
    }
