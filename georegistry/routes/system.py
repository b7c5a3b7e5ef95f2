"""
Health endpoint.
"""

from fastapi import APIRouter

from georegistry.core.cache import check_redis_health
from georegistry.core.config import settings
from georegistry.core.database import check_database_health

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict:
    """Report whether the database and the cache answer."""
    database_ok = check_database_health()
    return {
        "status": "ok" if database_ok else "degraded",
        "database": database_ok,
        "cache": check_redis_health() if settings.CACHE_ENABLED else None,
    }
