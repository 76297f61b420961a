"""
Rate Limiting Module

Request rate limiting and failed-login throttling backed by a small counter
store. Redis is used when it is connected; otherwise counters live in
process memory (single-instance deployments only).

SECURITY: Rate limiting bounds abuse of:
- The public enrollment form (spam submissions)
- Document downloads
- Admin endpoints and login (brute force)
"""

import logging
import time
from collections.abc import Callable
from typing import Protocol

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from innovision.core import redis as redis_module
from innovision.core.exceptions import ThrottledError

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# (requests, window seconds) per client address
ENROLLMENT_RATE_LIMIT = (5, 60 * 60)
DOCUMENT_RATE_LIMIT = (20, 10 * 60)
ADMIN_RATE_LIMIT = (50, 15 * 60)


class CounterStore(Protocol):
    """Keyed integer counters with expiry."""

    async def incr(self, key: str, ttl_seconds: int) -> int:
        """Increment a counter, starting its expiry window when it is created."""
        ...

    async def get(self, key: str) -> int | None: ...

    async def set(self, key: str, value: int, ttl_seconds: int) -> None: ...

    async def ttl(self, key: str) -> int | None:
        """Seconds until the key expires, or None if it does not exist."""
        ...

    async def delete(self, key: str) -> None: ...


class MemoryCounterStore:
    """
    In-process counter store.

    Doesn't work across multiple server instances. The clock is injectable
    so expiry can be tested without sleeping.
    """

    SWEEP_INTERVAL_SECONDS = 60

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        # Format: {key: (value, expires_at)}
        self._entries: dict[str, tuple[int, float]] = {}
        self._last_sweep = clock()

    def _sweep(self) -> None:
        """Drop expired entries, at most once per SWEEP_INTERVAL_SECONDS."""
        now = self._clock()
        if now - self._last_sweep < self.SWEEP_INTERVAL_SECONDS:
            return
        self._last_sweep = now
        expired = [key for key, (_, expires_at) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]

    def _live(self, key: str) -> tuple[int, float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry

    async def incr(self, key: str, ttl_seconds: int) -> int:
        entry = self._live(key)
        if entry is None:
            self._sweep()
            entry = (0, self._clock() + ttl_seconds)
        value = entry[0] + 1
        self._entries[key] = (value, entry[1])
        return value

    async def get(self, key: str) -> int | None:
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value: int, ttl_seconds: int) -> None:
        self._sweep()
        self._entries[key] = (value, self._clock() + ttl_seconds)

    async def ttl(self, key: str) -> int | None:
        entry = self._live(key)
        if entry is None:
            return None
        return max(1, int(entry[1] - self._clock()))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()


class RedisCounterStore:
    """Counter store shared by all instances through Redis."""

    def __init__(self, client: Redis):
        self._client = client

    async def incr(self, key: str, ttl_seconds: int) -> int:
        value = await self._client.incr(key)
        if value == 1:
            await self._client.expire(key, ttl_seconds)
        return int(value)

    async def get(self, key: str) -> int | None:
        value = await self._client.get(key)
        return int(value) if value is not None else None

    async def set(self, key: str, value: int, ttl_seconds: int) -> None:
        await self._client.set(key, value, ex=ttl_seconds)

    async def ttl(self, key: str) -> int | None:
        remaining = await self._client.ttl(key)
        # -2: missing key, -1: no expiry
        if remaining is None or remaining == -2:
            return None
        return max(1, int(remaining)) if remaining > 0 else None

    async def delete(self, key: str) -> None:
        await self._client.delete(key)


class FallbackCounterStore:
    """
    Redis-backed store that degrades to the in-memory store on Redis errors.

    Counters written during an outage live only in this process.
    """

    def __init__(self, primary: CounterStore, fallback: CounterStore):
        self._primary = primary
        self._fallback = fallback

    async def _call(self, operation: str, *args):
        try:
            return await getattr(self._primary, operation)(*args)
        except RedisError as e:
            logger.warning(f"Redis counter {operation} failed, using memory: {e}")
            return await getattr(self._fallback, operation)(*args)

    async def incr(self, key: str, ttl_seconds: int) -> int:
        return await self._call("incr", key, ttl_seconds)

    async def get(self, key: str) -> int | None:
        return await self._call("get", key)

    async def set(self, key: str, value: int, ttl_seconds: int) -> None:
        await self._call("set", key, value, ttl_seconds)

    async def ttl(self, key: str) -> int | None:
        return await self._call("ttl", key)

    async def delete(self, key: str) -> None:
        await self._call("delete", key)


# Fallback store when Redis is unavailable
_memory_store = MemoryCounterStore()


def get_memory_store() -> MemoryCounterStore:
    """Return the process-local fallback store."""
    return _memory_store


def get_counter_store() -> CounterStore:
    """Return the Redis store when connected, the memory store otherwise."""
    if redis_module.is_redis_available():
        return FallbackCounterStore(RedisCounterStore(redis_module.redis_client), _memory_store)
    return _memory_store


class RateLimitExceeded(HTTPException):
    """Exception raised when a rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int, retry_after_seconds: int | None = None):
        retry_after = retry_after_seconds or window_seconds
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": retry_after,
            },
            headers={"Retry-After": str(retry_after)},
        )


class RateLimiter:
    """
    Fixed-window request limiter.

    Usage:
        limiter = RateLimiter(limit=5, window_seconds=3600, store=get_counter_store())
        if not await limiter.check("enrollment:203.0.113.7"):
            ...
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        store: CounterStore,
        clock: Clock = time.time,
    ):
        self.limit = limit
        self.window_seconds = window_seconds
        self._store = store
        self._clock = clock

    def _window_key(self, key: str) -> str:
        window_index = int(self._clock() // self.window_seconds)
        return f"rate_limit:{key}:{window_index}"

    async def check(self, key: str) -> bool:
        """Record one request for ``key``. Returns False once the limit is exceeded."""
        count = await self._store.incr(self._window_key(key), self.window_seconds)
        return count <= self.limit

    def retry_after(self) -> int:
        """Seconds until the current window closes."""
        elapsed = self._clock() % self.window_seconds
        return max(1, int(self.window_seconds - elapsed))


class LoginThrottle:
    """
    Failed-login tracking per client.

    - 3 consecutive failures block the client for 5 minutes
    - 5 consecutive failures block the client for 15 minutes
    - A successful login clears the history
    """

    SHORT_BLOCK_AFTER = 3
    SHORT_BLOCK_SECONDS = 5 * 60
    LONG_BLOCK_AFTER = 5
    LONG_BLOCK_SECONDS = 15 * 60
    FAILURE_MEMORY_SECONDS = 60 * 60

    def __init__(self, store: CounterStore):
        self._store = store

    @staticmethod
    def _failures_key(client: str) -> str:
        return f"login_failures:{client}"

    @staticmethod
    def _blocked_key(client: str) -> str:
        return f"login_blocked:{client}"

    async def ensure_allowed(self, client: str) -> None:
        """Raise ThrottledError while the client is blocked."""
        remaining = await self._store.ttl(self._blocked_key(client))
        if remaining:
            raise ThrottledError(retry_after_seconds=remaining)

    async def record_failure(self, client: str) -> int:
        """Count a failed attempt and block the client when a threshold is reached."""
        failures = await self._store.incr(self._failures_key(client), self.FAILURE_MEMORY_SECONDS)

        if failures >= self.LONG_BLOCK_AFTER:
            await self._store.set(self._blocked_key(client), 1, self.LONG_BLOCK_SECONDS)
        elif failures >= self.SHORT_BLOCK_AFTER:
            await self._store.set(self._blocked_key(client), 1, self.SHORT_BLOCK_SECONDS)

        return failures

    async def reset(self, client: str) -> None:
        await self._store.delete(self._failures_key(client))
        await self._store.delete(self._blocked_key(client))


def client_address(request: Request) -> str:
    """Best-effort client identifier for rate limiting."""
    return request.client.host if request.client else "unknown"


def rate_limit(scope: str, limit: int, window_seconds: int):
    """
    Build a FastAPI dependency limiting requests per client address.

    Usage:
        @router.post("", dependencies=[Depends(rate_limit("enrollment", 5, 3600))])
        async def submit(...):
            ...

    Raises:
        RateLimitExceeded: When the limit is exceeded (HTTP 429)
    """

    async def dependency(request: Request) -> None:
        key = f"{scope}:{client_address(request)}"
        limiter = RateLimiter(limit, window_seconds, get_counter_store())

        if not await limiter.check(key):
            logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
            raise RateLimitExceeded(limit, window_seconds, limiter.retry_after())

    return dependency


__all__ = [
    "ADMIN_RATE_LIMIT",
    "DOCUMENT_RATE_LIMIT",
    "ENROLLMENT_RATE_LIMIT",
    "CounterStore",
    "FallbackCounterStore",
    "MemoryCounterStore",
    "RedisCounterStore",
    "RateLimiter",
    "RateLimitExceeded",
    "LoginThrottle",
    "client_address",
    "get_counter_store",
    "get_memory_store",
    "rate_limit",
]
