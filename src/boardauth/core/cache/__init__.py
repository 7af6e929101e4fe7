"""Redis connection management."""

from boardauth.core.cache.redis import close_redis_pool, ping_redis, redis_client


__all__ = [
    "close_redis_pool",
    "ping_redis",
    "redis_client",
]
