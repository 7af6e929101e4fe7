"""Rate limiting with token buckets.

Provides per-identity request limits backed by an in-process or Redis
bucket store.
"""

from boardauth.core.rate_limit.backend import (
    Bucket,
    BucketStore,
    InMemoryBucketStore,
    RateLimitResult,
    RedisBucketStore,
    TokenBucketRateLimiter,
    rate_limit_key,
    spend_token,
)
from boardauth.core.rate_limit.middleware import RateLimitMiddleware


__all__ = [
    "Bucket",
    "BucketStore",
    "InMemoryBucketStore",
    "RateLimitMiddleware",
    "RateLimitResult",
    "RedisBucketStore",
    "TokenBucketRateLimiter",
    "rate_limit_key",
    "spend_token",
]
