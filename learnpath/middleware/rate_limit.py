"""Redis 슬라이딩 윈도우 레이트리밋 미들웨어.

유효한 access token 이 있으면 사용자(sub) 단위, 없으면 IP 단위로 센다.
Redis 가 없거나 오류가 나면 제한 없이 통과시킨다.
"""

import logging
import time
import uuid
from typing import Awaitable, Callable, Optional

import jwt
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from learnpath.core.auth import _get_jwt_key
from learnpath.core.config import get_settings
from learnpath.core.redis_keys import key_rate_limit
from learnpath.services.redis_cache import RedisCacheService, get_redis_cache

logger = logging.getLogger(__name__)

# KEYS[1]=window key, ARGV: now_ms, window_ms, limit, member
# 같은 ms 에 들어온 요청이 하나로 합쳐지지 않도록 member 는 요청마다 고유값
SLIDING_WINDOW_LUA = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])

redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', now - window)
local used = redis.call('ZCARD', KEYS[1])
if used >= limit then
    local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')
    local reset = now + window
    if oldest[2] then reset = tonumber(oldest[2]) + window end
    return {0, 0, reset}
end
redis.call('ZADD', KEYS[1], now, ARGV[4])
redis.call('PEXPIRE', KEYS[1], window)
return {1, limit - used - 1, now + window}
"""

EXEMPT_PATHS = frozenset({"/", "/docs", "/redoc", "/openapi.json", "/api/v1/health/live"})


def rate_limit_identity(request: Request) -> tuple[str, str]:
    """(scope, identifier): ("user", email) for a valid bearer token, else ("ip", host)."""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token:
        settings = get_settings()
        try:
            payload = jwt.decode(
                token,
                _get_jwt_key(settings.JWT_SECRET),
                algorithms=[settings.JWT_ALGORITHM],
            )
        except jwt.InvalidTokenError:
            payload = {}
        if payload.get("sub"):
            return "user", str(payload["sub"])
    return "ip", request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-user / per-IP request budget over a sliding window."""

    def __init__(
        self,
        app,
        limit: int = 100,
        window_seconds: int = 60,
        cache_getter: Callable[[], Awaitable[RedisCacheService]] = get_redis_cache,
    ):
        super().__init__(app)
        self.limit = limit
        self.window_ms = window_seconds * 1000
        self.cache_getter = cache_getter

    async def _consume(self, scope: str, identifier: str) -> Optional[tuple[int, int, int]]:
        """Returns (allowed, remaining, reset_ms), or None when Redis is unavailable."""
        try:
            cache = await self.cache_getter()
            if not cache.client:
                return None
            now_ms = int(time.time() * 1000)
            allowed, remaining, reset_ms = await cache.client.eval(
                SLIDING_WINDOW_LUA,
                1,
                key_rate_limit(scope, identifier),
                now_ms,
                self.window_ms,
                self.limit,
                uuid.uuid4().hex,
            )
            return int(allowed), int(remaining), int(reset_ms)
        except Exception as e:
            logger.warning("Rate limit check skipped (%s:%s): %s", scope, identifier, e)
            return None

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        scope, identifier = rate_limit_identity(request)
        consumed = await self._consume(scope, identifier)
        if consumed is None:
            return await call_next(request)

        allowed, remaining, reset_ms = consumed
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(reset_ms // 1000),
        }
        if not allowed:
            retry_after = max(1, -(-(reset_ms - int(time.time() * 1000)) // 1000))
            logger.info("Rate limit exceeded for %s:%s", scope, identifier)
            return JSONResponse(
                status_code=429,
                content={
                    "status": "error",
                    "message": "Too Many Requests",
                    "error": {"code": "rate_limited", "scope": scope},
                },
                headers={**headers, "Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
