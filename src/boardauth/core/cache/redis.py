"""Redis client configuration and connection management.

Provides an async Redis client with connection pooling for state that
must be shared between processes, such as rate limit buckets. Pools
are created per URL, so each caller passes the URL from the settings
it was built with.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool


# Connection pools for efficient connection reuse, keyed by URL
_pools: dict[str, ConnectionPool] = {}


def _get_pool(url: str) -> ConnectionPool:
    """Get or create the connection pool for a Redis URL."""
    pool = _pools.get(url)
    if pool is None:
        pool = ConnectionPool.from_url(
            url,
            max_connections=50,
            decode_responses=True,
        )
        _pools[url] = pool
    return pool


@asynccontextmanager
async def redis_client(url: str) -> AsyncGenerator[redis.Redis, None]:  # type: ignore[type-arg]
    """Context manager for Redis client.

    Usage:
        async with redis_client(str(settings.redis_url)) as client:
            await client.set("key", "value")
    """
    client = redis.Redis(connection_pool=_get_pool(url))
    try:
        yield client
    finally:
        await client.aclose()


async def ping_redis(url: str) -> bool:
    """Check that Redis answers.

    Connection errors propagate to the caller.
    """
    async with redis_client(url) as client:
        return bool(await client.ping())


async def close_redis_pool() -> None:
    """Close every Redis connection pool.

    Call this during application shutdown.
    """
    while _pools:
        _, pool = _pools.popitem()
        await pool.disconnect()
