"""
Redis-backed cache for fetched meeting snapshots.

The cache belongs to the snapshot provider; the classifier and the layout
never touch it. Snapshots are stored as JSON lists of ``Meeting`` with a
TTL, so every worker process sees the same snapshot for a viewer.
"""

import asyncio
import json
from typing import List, Optional, Protocol

import redis.asyncio as redis
from redis.asyncio import Redis

from services.common.logging_config import get_logger
from services.meeting_board.schemas import Meeting

logger = get_logger(__name__)

Snapshot = List[Meeting]


class SnapshotCache(Protocol):
    async def get(self, key: str) -> Optional[Snapshot]: ...

    async def put(self, key: str, snapshot: Snapshot, expiry: int) -> bool: ...

    async def invalidate(self, key: str) -> bool: ...


def snapshot_cache_key(event_identifier: str, viewer_role: str, viewer_id: str) -> str:
    """
    Cache key for one viewer's snapshot.

    Visitor and exhibitor ids come from different id spaces, so the role is
    part of the key.

    Examples:
        >>> snapshot_cache_key("expo-2024", "visitor", "7")
        'meeting_board:expo-2024:visitor:7'
    """
    return f"meeting_board:{event_identifier}:{viewer_role}:{viewer_id}"


class RedisSnapshotCache:
    """
    Snapshot cache on Redis with per-key TTL.

    Redis failures are logged and treated as a cache miss, so an unavailable
    Redis slows the board down without breaking it.

    Args:
        redis_url: Redis connection URL
        client: Optional ready client, used instead of connecting to ``redis_url``
    """

    def __init__(self, redis_url: str, client: Optional[Redis] = None) -> None:
        self.redis_url = redis_url
        self._redis: Optional[Redis] = client
        self._connection_lock = asyncio.Lock()

    async def _get_redis(self) -> Redis:
        """Get Redis connection with lazy initialization."""
        if self._redis is None:
            async with self._connection_lock:
                if self._redis is None:
                    self._redis = redis.from_url(
                        self.redis_url,
                        encoding="utf-8",
                        decode_responses=True,
                        socket_timeout=5.0,
                        socket_connect_timeout=5.0,
                        retry_on_timeout=True,
                    )
                    logger.info("Redis snapshot cache configured", redis_url=self.redis_url)
        return self._redis

    async def get(self, key: str) -> Optional[Snapshot]:
        try:
            redis_client = await self._get_redis()
            cached_data = await redis_client.get(key)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Failed to get snapshot from cache for key '{key}': {e}")
            return None

        if cached_data is None:
            logger.debug(f"Cache miss for key: {key}")
            return None

        try:
            snapshot = [Meeting.model_validate(item) for item in json.loads(cached_data)]
        except (ValueError, TypeError) as e:
            # Unreadable entries are dropped so the next fetch replaces them
            logger.warning(f"Discarding unreadable cache entry for key '{key}': {e}")
            await self.invalidate(key)
            return None

        logger.debug(f"Cache hit for key: {key}")
        return snapshot

    async def put(self, key: str, snapshot: Snapshot, expiry: int) -> bool:
        """
        Store ``snapshot`` for ``expiry`` seconds.

        Returns:
            True if stored; False for a non-positive expiry or a Redis failure
        """
        if expiry <= 0:
            return False
        serialized = json.dumps([meeting.model_dump(mode="json") for meeting in snapshot])
        try:
            redis_client = await self._get_redis()
            await redis_client.setex(key, int(expiry), serialized)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Failed to set snapshot to cache for key '{key}': {e}")
            return False
        logger.debug(f"Cached snapshot for key: {key} (TTL: {expiry}s)")
        return True

    async def invalidate(self, key: str) -> bool:
        try:
            redis_client = await self._get_redis()
            deleted_count = await redis_client.delete(key)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Failed to delete cache key '{key}': {e}")
            return False
        return deleted_count > 0

    async def get_ttl(self, key: str) -> Optional[int]:
        """Remaining TTL in seconds, or None if the key is missing or never expires."""
        try:
            redis_client = await self._get_redis()
            ttl = await redis_client.ttl(key)
        except (redis.RedisError, OSError) as e:
            logger.error(f"Failed to get TTL for cache key '{key}': {e}")
            return None
        return ttl if ttl >= 0 else None

    async def health_check(self) -> bool:
        try:
            redis_client = await self._get_redis()
            await redis_client.ping()
            return True
        except (redis.RedisError, OSError) as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("Redis connection closed")
