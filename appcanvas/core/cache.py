"""
Redis connection used for the AI rate-limit counters.

When Redis is disabled or unreachable every operation degrades: counters
report ``None`` and deletes report ``False``; callers decide what that means.
"""
from typing import Optional, Tuple

import redis.asyncio as redis
from loguru import logger

from appcanvas.config import settings


class CacheManager:

    def __init__(self):
        self.client: Optional[redis.Redis] = None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected and self.client is not None

    async def connect(self) -> None:
        """Open the pool and verify it with a PING; raises on failure"""
        self.client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis_max_connections,
        )
        try:
            await self.client.ping()
        except redis.RedisError as e:
            logger.error(f"Redis unreachable at {settings.redis_url}: {e}")
            await self.client.aclose()
            self.client = None
            raise

        self._connected = True
        logger.info(f"Redis connected: {settings.redis_url}")

    async def disconnect(self) -> None:
        if self.client is not None:
            await self.client.aclose()
            self.client = None
        self._connected = False
        logger.info("Redis disconnected")

    async def increment_window(self, key: str, window_seconds: int) -> Optional[Tuple[int, int]]:
        """
        Count one hit on ``key`` in a fixed window of ``window_seconds``.

        INCR, EXPIRE NX and TTL run in one MULTI/EXEC, so the first hit
        creates the key together with its window TTL. Needs Redis 7+.

        Returns:
            ``(hits in current window, seconds until the window resets)``,
            or None when Redis is unavailable
        """
        if not self.is_connected:
            return None

        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                pipe.expire(key, window_seconds, nx=True)
                pipe.ttl(key)
                count, _, ttl = await pipe.execute()

            return int(count), int(ttl) if ttl >= 0 else window_seconds

        except redis.RedisError as e:
            logger.error(f"Counter increment failed for '{key}': {e}")
            return None

    async def delete(self, key: str) -> bool:
        """True if a key was removed"""
        if not self.is_connected:
            return False

        try:
            return bool(await self.client.delete(key))
        except redis.RedisError as e:
            logger.error(f"Cache delete failed for '{key}': {e}")
            return False

    async def ping(self) -> bool:
        """Round trip used by the readiness check"""
        if not self.is_connected:
            return False

        try:
            return bool(await self.client.ping())
        except redis.RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False


cache_manager = CacheManager()
