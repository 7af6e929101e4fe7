"""Tests for Redis connection pool management."""

import pytest

from boardauth.core.cache import redis as redis_cache


@pytest.fixture(autouse=True)
def pools(monkeypatch: pytest.MonkeyPatch) -> dict:
    """Start every test without cached pools."""
    pools: dict = {}
    monkeypatch.setattr(redis_cache, "_pools", pools)
    return pools


def test_pool_uses_given_url() -> None:
    pool = redis_cache._get_pool("redis://cache.internal:6380/2")

    assert pool.connection_kwargs["host"] == "cache.internal"
    assert pool.connection_kwargs["port"] == 6380
    assert pool.connection_kwargs["db"] == 2


def test_pool_is_reused_per_url(pools: dict) -> None:
    first = redis_cache._get_pool("redis://one:6379")
    again = redis_cache._get_pool("redis://one:6379")
    other = redis_cache._get_pool("redis://two:6379")

    assert first is again
    assert first is not other
    assert len(pools) == 2


async def test_close_disconnects_all_pools(pools: dict) -> None:
    redis_cache._get_pool("redis://one:6379")
    redis_cache._get_pool("redis://two:6379")

    await redis_cache.close_redis_pool()

    assert pools == {}
