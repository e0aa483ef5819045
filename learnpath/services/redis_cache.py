"""
Redis 연결 서비스.

refresh token 저장소와 레이트리밋 미들웨어가 공유하는 단일 커넥션 풀.
Redis 장애 시 client 는 None 이 되고, 호출자가 fallback 을 결정한다.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis.asyncio as redis

from ..core.config import settings

logger = logging.getLogger(__name__)


class RedisCacheService:
    """Redis 커넥션 관리 서비스."""

    def __init__(self):
        self._pool: Optional[redis.ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Redis 연결 초기화."""
        if self._client is not None:
            return
        try:
            self._pool = redis.ConnectionPool.from_url(
                settings.REDIS_URL,
                decode_responses=True,
                max_connections=50,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as e:
            logger.warning("Redis connection failed: %s", e)
            self._client = None

    async def disconnect(self) -> None:
        """Redis 연결 해제."""
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._pool:
            await self._pool.disconnect()
            self._pool = None

    @property
    def client(self) -> Optional[redis.Redis]:
        return self._client


# 싱글톤 인스턴스
_redis_cache: Optional[RedisCacheService] = None


async def get_redis_cache() -> RedisCacheService:
    """Redis 캐시 서비스 인스턴스 반환."""
    global _redis_cache
    if _redis_cache is None:
        _redis_cache = RedisCacheService()
        await _redis_cache.connect()
    return _redis_cache


async def close_redis_cache() -> None:
    """Redis 캐시 서비스 연결 해제."""
    global _redis_cache
    if _redis_cache is not None:
        await _redis_cache.disconnect()
        _redis_cache = None
