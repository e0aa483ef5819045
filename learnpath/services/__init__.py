"""Service layer."""

from learnpath.services.redis_cache import close_redis_cache, get_redis_cache

__all__ = ["get_redis_cache", "close_redis_cache"]
