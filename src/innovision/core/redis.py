"""
Redis Configuration

Optional async Redis client. When configured it backs rate limiting,
login throttling and session revocation; otherwise those fall back to
process-local memory.
"""

import logging

from redis.asyncio import Redis, from_url

from innovision.core.config import settings

logger = logging.getLogger(__name__)

# Redis client instance
redis_client: Redis | None = None


async def init_redis() -> Redis | None:
    """
    Initialize the Redis connection.

    Call this on application startup. Returns None when REDIS_URL is not set.
    """
    global redis_client
    if not settings.redis_url:
        logger.info("REDIS_URL not set - using in-memory counters")
        return None

    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Test connection
    await client.ping()
    redis_client = client
    return redis_client


def is_redis_available() -> bool:
    """Check if the Redis client is initialized."""
    return redis_client is not None


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
