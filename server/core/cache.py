"""Cache service with Redis (production) or in-process (development) backend.

Values are stored as JSON with a TTL on both backends, so a cached payload
reads back the same regardless of where it was stored.
"""

import json
import time
import uuid
from typing import Any, Callable, Dict, Optional, Tuple

import redis.asyncio as redis

from core.config import Settings
from core.logging import get_logger, log_cache_operation

logger = get_logger(__name__)

MARKER_PREFIX = "inflight:"

# Seconds between sweeps of expired in-process entries
MEMORY_SWEEP_INTERVAL = 60


class CacheService:
    """Async key-value cache with TTL.

    Backend selection:
    - Redis: When REDIS_ENABLED=true and the server answers PING (production)
    - Memory: Per-process dict with expiry timestamps (development, tests,
      or when Redis is unreachable at startup)
    """

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.monotonic):
        self.settings = settings
        self.redis: Optional[redis.Redis] = None
        self.use_redis = settings.redis_enabled
        self._clock = clock
        # key -> (serialized value, expires_at)
        self.memory_cache: Dict[str, Tuple[str, float]] = {}
        self._next_sweep = 0.0

    async def startup(self):
        """Initialize cache connection."""
        if self.use_redis and self.settings.redis_url:
            try:
                self.redis = redis.from_url(
                    self.settings.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_timeout=5,
                    socket_connect_timeout=5,
                    retry_on_timeout=True
                )
                await self.redis.ping()
                logger.info("Redis cache initialized", url=self.settings.redis_url)
            except Exception as e:
                logger.warning("Redis connection failed, falling back to memory", error=str(e))
                self.use_redis = False
                self.redis = None
        else:
            self.use_redis = False
            logger.info("Using in-memory cache", redis_enabled=self.settings.redis_enabled)

    async def shutdown(self):
        """Close cache connections."""
        if self.redis:
            await self.redis.aclose()
            logger.info("Redis cache connections closed")
        self.memory_cache.clear()

    def is_redis_available(self) -> bool:
        """Check if Redis is available and connected."""
        return self.use_redis and self.redis is not None

    def _memory_get(self, key: str) -> Optional[str]:
        entry = self.memory_cache.get(key)
        if entry is None:
            return None
        serialized, expires_at = entry
        if expires_at <= self._clock():
            del self.memory_cache[key]
            return None
        return serialized

    def _memory_put(self, key: str, serialized: str, ttl: float) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep_expired(now)
            self._next_sweep = now + MEMORY_SWEEP_INTERVAL
        self.memory_cache[key] = (serialized, now + ttl)

    def _sweep_expired(self, now: float) -> int:
        """Drop every expired entry, including keys nobody reads again."""
        expired = [key for key, (_, expires_at) in self.memory_cache.items() if expires_at <= now]
        for key in expired:
            del self.memory_cache[key]
        if expired:
            logger.debug("Swept expired cache entries", count=len(expired),
                         remaining=len(self.memory_cache))
        return len(expired)

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache. Absent, expired and unreadable entries return None."""
        try:
            if self.is_redis_available():
                value = await self.redis.get(key)
            else:
                value = self._memory_get(key)

            log_cache_operation(logger, "get", key, hit=value is not None)
            return json.loads(value) if value is not None else None

        except Exception as e:
            logger.error("Cache get failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache with TTL in seconds. None values are not stored."""
        if value is None:
            return False
        try:
            ttl = ttl or self.settings.cache_ttl
            serialized = json.dumps(value, default=str)

            if self.is_redis_available():
                await self.redis.setex(key, ttl, serialized)
            else:
                self._memory_put(key, serialized, ttl)

            log_cache_operation(logger, "set", key, ttl=ttl)
            return True

        except Exception as e:
            logger.error("Cache set failed", key=key, error=str(e))
            return False

    async def acquire_marker(self, key: str, ttl: int) -> Optional[str]:
        """Atomically claim the in-flight marker for ``key``.

        Returns a release token when claimed, or None when another holder has
        it. Store errors return a token so the caller proceeds uncoordinated.
        """
        marker = MARKER_PREFIX + key
        token = uuid.uuid4().hex
        try:
            if self.is_redis_available():
                acquired = await self.redis.set(marker, token, ex=ttl, nx=True)
            else:
                acquired = self._memory_get(marker) is None
                if acquired:
                    self._memory_put(marker, json.dumps(token), ttl)

            log_cache_operation(logger, "acquire_marker", key, acquired=bool(acquired))
            return token if acquired else None

        except Exception as e:
            logger.error("Cache marker acquire failed", key=key, error=str(e))
            return token

    async def release_marker(self, key: str, token: str) -> bool:
        """Release the in-flight marker if ``token`` still holds it."""
        marker = MARKER_PREFIX + key
        try:
            if self.is_redis_available():
                current = await self.redis.get(marker)
                if current and current == token:
                    await self.redis.delete(marker)
                    return True
                return False

            current = self._memory_get(marker)
            if current is not None and json.loads(current) == token:
                del self.memory_cache[marker]
                return True
            return False

        except Exception as e:
            logger.error("Cache marker release failed", key=key, error=str(e))
            return False

    async def marker_held(self, key: str) -> bool:
        """Check whether any caller currently holds the marker for ``key``."""
        marker = MARKER_PREFIX + key
        try:
            if self.is_redis_available():
                return bool(await self.redis.exists(marker))
            return self._memory_get(marker) is not None
        except Exception as e:
            logger.error("Cache marker check failed", key=key, error=str(e))
            return False

    async def ping(self) -> bool:
        """Check cache connectivity."""
        try:
            if self.is_redis_available():
                return bool(await self.redis.ping())
            return True
        except Exception:
            return False
