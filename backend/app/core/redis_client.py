"""
Redis client initialization and connection management.

The client backs the dashboard statistics cache.
"""

import logging
import redis.asyncio as redis
from redis.exceptions import RedisError
from backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Create async Redis client (connections are opened lazily)
redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Used as a FastAPI dependency so tests can substitute a stand-in.
    """
    return redis_client


async def ping_redis() -> bool:
    """
    Test Redis connection.

    Returns:
        True if connection successful, False otherwise
    """
    try:
        return await redis_client.ping()
    except RedisError as e:
        logger.warning("Redis ping failed: %s", e)
        return False


async def close_redis():
    await redis_client.aclose()
