"""Token bucket rate limiting.

Each identity owns a bucket of ``capacity`` tokens. A request spends
one token. Once more than ``interval_seconds`` have passed since the
last refill, the bucket is reset to full capacity in one step; there
is no gradual accrual in between.

Buckets live in a ``BucketStore``. The in-memory store keeps them per
process; the Redis store shares them between processes.
"""

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import structlog

from boardauth.core.cache.redis import redis_client
from boardauth.core.constants import ANONYMOUS_RATE_LIMIT_KEY


logger = structlog.get_logger()


@dataclass
class Bucket:
    """Remaining tokens of one identity and when they were last refilled."""

    tokens: float
    last_refill: float


@dataclass
class RateLimitResult:
    """Result of a rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_time: int  # Unix timestamp when the bucket refills
    retry_after: int | None = None  # Seconds until retry (if denied)


def spend_token(
    bucket: Bucket | None,
    capacity: int,
    interval_seconds: float,
    now: float,
) -> tuple[bool, Bucket]:
    """Apply one request to a bucket.

    A missing bucket starts full. A bucket last refilled more than
    ``interval_seconds`` ago is reset to full first.

    Returns:
        Whether a token was spent, and the bucket afterwards
    """
    if bucket is None or now - bucket.last_refill > interval_seconds:
        bucket = Bucket(tokens=float(capacity), last_refill=now)
    else:
        bucket = Bucket(tokens=bucket.tokens, last_refill=bucket.last_refill)

    allowed = bucket.tokens >= 1
    if allowed:
        bucket.tokens -= 1
    return allowed, bucket


class BucketStore(Protocol):
    """Storage for token buckets.

    ``take`` reads, updates and writes a bucket as one atomic step, so
    concurrent requests for the same key never spend the same token.
    """

    async def take(
        self,
        key: str,
        capacity: int,
        interval_seconds: float,
        now: float,
        ttl_seconds: int,
    ) -> tuple[bool, Bucket]: ...

    async def delete(self, key: str) -> None: ...

    async def sweep(self, older_than: float) -> int: ...


class InMemoryBucketStore:
    """Process-local bucket store.

    ``take`` never awaits between reading and writing a bucket, which
    makes it atomic on the event loop. Idle buckets are only removed by
    ``sweep``.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, Bucket] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    async def get(self, key: str) -> Bucket | None:
        return self._buckets.get(key)

    async def take(
        self,
        key: str,
        capacity: int,
        interval_seconds: float,
        now: float,
        ttl_seconds: int,  # noqa: ARG002
    ) -> tuple[bool, Bucket]:
        allowed, bucket = spend_token(
            self._buckets.get(key), capacity, interval_seconds, now
        )
        self._buckets[key] = bucket
        return allowed, bucket

    async def delete(self, key: str) -> None:
        self._buckets.pop(key, None)

    async def sweep(self, older_than: float) -> int:
        """Drop buckets last refilled before ``older_than``."""
        stale = [
            key
            for key, bucket in self._buckets.items()
            if bucket.last_refill < older_than
        ]
        for key in stale:
            del self._buckets[key]
        return len(stale)


# Same rules as spend_token, run inside Redis so the read and the write
# cannot interleave with another client's.
TAKE_TOKEN_SCRIPT = """
local capacity = tonumber(ARGV[1])
local interval = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local ttl = tonumber(ARGV[4])
local tokens = tonumber(redis.call('HGET', KEYS[1], 'tokens'))
local last_refill = tonumber(redis.call('HGET', KEYS[1], 'last_refill'))
if tokens == nil or last_refill == nil or now - last_refill > interval then
    tokens = capacity
    last_refill = now
end
local allowed = 0
if tokens >= 1 then
    tokens = tokens - 1
    allowed = 1
end
redis.call('HSET', KEYS[1], 'tokens', tostring(tokens), 'last_refill', tostring(last_refill))
redis.call('EXPIRE', KEYS[1], ttl)
return {allowed, tostring(tokens), tostring(last_refill)}
"""


class RedisBucketStore:
    """Redis-backed bucket store shared across processes.

    Buckets are hashes with a TTL, so Redis expires idle ones itself.
    Each spend runs as one Lua script.
    """

    def __init__(self, redis_url: str) -> None:
        self.redis_url = redis_url

    async def take(
        self,
        key: str,
        capacity: int,
        interval_seconds: float,
        now: float,
        ttl_seconds: int,
    ) -> tuple[bool, Bucket]:
        async with redis_client(self.redis_url) as client:
            allowed, tokens, last_refill = await client.eval(
                TAKE_TOKEN_SCRIPT,
                1,
                key,
                capacity,
                interval_seconds,
                repr(now),
                ttl_seconds,
            )
        return bool(int(allowed)), Bucket(
            tokens=float(tokens),
            last_refill=float(last_refill),
        )

    async def delete(self, key: str) -> None:
        async with redis_client(self.redis_url) as client:
            await client.delete(key)

    async def sweep(self, older_than: float) -> int:  # noqa: ARG002
        return 0


class TokenBucketRateLimiter:
    """Token bucket rate limiter over a pluggable store.

    Example:
        limiter = TokenBucketRateLimiter(InMemoryBucketStore(), 60, 60)
        result = await limiter.check("user:123")
        if not result.allowed:
            raise RateLimitError(retry_after=result.retry_after)
    """

    def __init__(
        self,
        store: BucketStore,
        capacity: int,
        interval_seconds: int,
        max_idle_seconds: int = 3600,
        prefix: str = "ratelimit",
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the rate limiter.

        Args:
            store: Where buckets are kept
            capacity: Tokens in a full bucket
            interval_seconds: Time after which a bucket is reset to full
            max_idle_seconds: Age after which an untouched bucket is dropped
            prefix: Key prefix separating independent limiters
            clock: Time source in seconds
        """
        if capacity < 1 or interval_seconds < 1:
            raise ValueError("Rate limit capacity and interval must be positive")
        self.store = store
        self.capacity = capacity
        self.interval_seconds = interval_seconds
        self.max_idle_seconds = max_idle_seconds
        self.prefix = prefix
        self.clock = clock

    def _build_key(self, identity: str) -> str:
        return f"{self.prefix}:{identity}"

    async def check(self, identity: str) -> RateLimitResult:
        """Spend one token of ``identity``'s bucket if one is left.

        Args:
            identity: Rate limit key (see ``rate_limit_key``)

        Returns:
            RateLimitResult with allowed status and metadata
        """
        key = self._build_key(identity)
        now = self.clock()

        allowed, bucket = await self.store.take(
            key,
            self.capacity,
            self.interval_seconds,
            now,
            self.max_idle_seconds,
        )
        reset_at = bucket.last_refill + self.interval_seconds

        if allowed:
            return RateLimitResult(
                allowed=True,
                limit=self.capacity,
                remaining=int(bucket.tokens),
                reset_time=math.ceil(reset_at),
            )

        retry_after = max(1, math.ceil(reset_at - now))
        logger.debug("rate_limit_denied", prefix=self.prefix, retry_after=retry_after)
        return RateLimitResult(
            allowed=False,
            limit=self.capacity,
            remaining=0,
            reset_time=math.ceil(reset_at),
            retry_after=retry_after,
        )

    async def allow(self, identity: str) -> bool:
        """Return whether a request for ``identity`` may proceed."""
        return (await self.check(identity)).allowed

    async def reset(self, identity: str) -> None:
        """Forget ``identity``'s bucket so it starts full again."""
        await self.store.delete(self._build_key(identity))

    async def cleanup(self) -> int:
        """Remove buckets idle for longer than ``max_idle_seconds``.

        Returns:
            Number of buckets removed
        """
        removed = await self.store.sweep(self.clock() - self.max_idle_seconds)
        if removed:
            logger.info("rate_limit_buckets_swept", prefix=self.prefix, count=removed)
        return removed


def rate_limit_key(user_id: object | None) -> str:
    """Build the bucket identity for a user, or the shared anonymous one."""
    if user_id:
        return f"user:{user_id}"
    return ANONYMOUS_RATE_LIMIT_KEY
