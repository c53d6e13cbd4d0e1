"""
Caching Service.

Redis-backed JSON cache for dashboard statistics.

Keys are namespaced and carry a version number; writers bump the version
with ``invalidate`` instead of scanning for keys, so stale entries simply
stop being read and expire on their TTL. Redis being unavailable never
fails a request: reads fall through to the database and the error is logged.
"""

import json
import logging
from typing import Any, Optional

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

DASHBOARD_NAMESPACE = "dashboard"


class CacheService:

    @staticmethod
    def _version_key(namespace: str) -> str:
        return f"cache:{namespace}:version"

    @staticmethod
    async def build_key(redis, namespace: str, *parts: Any) -> Optional[str]:
        """Return the current versioned key, or None when Redis is unreachable."""
        try:
            version = await redis.get(CacheService._version_key(namespace))
        except RedisError as e:
            logger.warning("Cache unavailable, skipping %s lookup: %s", namespace, e)
            return None
        suffix = ":".join(str(part) for part in parts)
        return f"cache:{namespace}:v{int(version or 0)}:{suffix}"

    @staticmethod
    async def get(redis, key: Optional[str]) -> Optional[Any]:
        if key is None:
            return None
        try:
            raw = await redis.get(key)
        except RedisError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    @staticmethod
    async def set(redis, key: Optional[str], data: Any, ttl_seconds: int = 300):
        if key is None:
            return
        try:
            await redis.set(key, json.dumps(data, default=str), ex=ttl_seconds)
        except RedisError as e:
            logger.warning("Cache write failed for %s: %s", key, e)

    @staticmethod
    async def invalidate(redis, namespace: str = DASHBOARD_NAMESPACE):
        """Retire every cached entry of ``namespace``."""
        try:
            await redis.incr(CacheService._version_key(namespace))
        except RedisError as e:
            logger.warning("Cache invalidation failed for %s: %s", namespace, e)
