"""
Rate Limiting Module

Sliding-window rate limiting backed by Redis sorted sets, falling back to an
in-memory window when Redis is unavailable.

Used on the credential endpoints (login, registration) to slow down password
guessing and mass account creation.
"""

import logging
import time

from fastapi import Depends, HTTPException, Request, status
from redis.asyncio import Redis

from admission_portal.core.sessions import get_redis

logger = logging.getLogger(__name__)

# In-memory fallback store: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using a Redis sorted set of request timestamps.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    return results[1] < limit


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check rate limit using in-memory storage.

    Only accurate for a single server process.
    """
    now = time.time()
    window = [ts for ts in _memory_store.get(key, []) if ts > now - window_seconds]

    if len(window) >= limit:
        _memory_store[key] = window
        return False

    window.append(now)
    _memory_store[key] = window
    return True


async def check_rate_limit(
    redis: Redis | None,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        redis: Redis client, or None when not connected
        key: Unique key for this rate limit (e.g., "rate_limit:login:1.2.3.4")
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    if redis is not None:
        try:
            return await _check_rate_limit_redis(redis, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


class RateLimiter:
    """
    FastAPI dependency enforcing a per-client-IP limit on one endpoint.

    Usage:
        @router.post("/login", dependencies=[Depends(RateLimiter("login", 10, 60))])
    """

    def __init__(self, action: str, limit: int, window_seconds: int):
        self.action = action
        self.limit = limit
        self.window_seconds = window_seconds

    async def __call__(
        self,
        request: Request,
        redis: Redis | None = Depends(get_redis),
    ) -> None:
        client_ip = request.client.host if request.client else "unknown"
        key = f"rate_limit:{self.action}:{client_ip}"

        allowed = await check_rate_limit(redis, key, self.limit, self.window_seconds)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}: {self.limit}/{self.window_seconds}s")
            raise RateLimitExceeded(self.limit, self.window_seconds)


def reset_memory_store() -> None:
    """Clear the in-memory fallback windows."""
    _memory_store.clear()


__all__ = [
    "RateLimiter",
    "RateLimitExceeded",
    "check_rate_limit",
    "reset_memory_store",
]
