"""Health check endpoints.

DB 는 필수 의존성, Redis 는 선택 의존성이다. Redis 가 내려가면 토큰 갱신과
레이트리밋만 비활성화되므로 readiness 는 "degraded"(200) 로 보고한다.
"""

import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from learnpath.core.config import settings
from learnpath.core.database import get_db
from learnpath.services.redis_cache import get_redis_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


async def _database_ok(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("Readiness: database check failed: %s", e)
        return False


async def _redis_ok() -> bool:
    try:
        cache = await get_redis_cache()
        if cache.client is None:
            return False
        await cache.client.ping()
        return True
    except Exception as e:
        logger.warning("Readiness: redis check failed: %s", e)
        return False


@router.get("/live")
async def liveness() -> dict:
    return {"status": "alive", "version": settings.APP_VERSION}


@router.get("/ready")
async def readiness(response: Response, db: AsyncSession = Depends(get_db)) -> dict:
    """ready / degraded (Redis 없음) / not_ready (DB 없음, 503)."""
    database = await _database_ok(db)
    redis_up = await _redis_ok()

    if not database:
        overall = "not_ready"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif not redis_up:
        overall = "degraded"
    else:
        overall = "ready"

    return {
        "status": overall,
        "checks": {
            "database": "ready" if database else "not_ready",
            "redis": "ready" if redis_up else "not_ready",
        },
    }
