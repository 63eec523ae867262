"""Read-through cache with single-flight refresh.

Per key the cache moves between three states:

    absent  --producer ok-->  fresh  --ttl elapses-->  expired
    expired --producer ok-->  fresh
    (a failed producer call leaves the state unchanged)

Concurrent misses for one key share a single producer call. Inside a process
the shared call is an asyncio.Task; across processes it is guarded by an
in-flight marker in the cache store.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from core.cache import CacheService
from core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Producer = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a cached fetch: a value, or an explicit "unavailable"."""
    value: Optional[T] = None
    error: Optional[BaseException] = None
    cached: bool = False

    @classmethod
    def success(cls, value: T, cached: bool = False) -> "Outcome[T]":
        return cls(value=value, cached=cached)

    @classmethod
    def unavailable(cls, error: BaseException) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def or_none(self) -> Optional[T]:
        """Value on success, None when the producer failed."""
        return self.value if self.ok else None

    def unwrap(self) -> Optional[T]:
        """Value on success; re-raise the producer error otherwise."""
        if self.error is not None:
            raise self.error
        return self.value


class CachedFetcher:
    """Cache-aside fetch over CacheService.

    A hit returns the stored value without calling the producer. A miss calls
    the producer once per key no matter how many callers are waiting, stores
    a successful result with the given TTL and hands it to every waiter. A
    producer failure is never stored; every waiter receives it as
    ``Outcome.unavailable``.
    """

    def __init__(
        self,
        cache: CacheService,
        lock_ttl: int = 30,
        lock_wait: float = 5.0,
        poll_interval: float = 0.05,
    ):
        self.cache = cache
        self.lock_ttl = lock_ttl
        self.lock_wait = lock_wait
        self.poll_interval = poll_interval
        self._inflight: Dict[str, asyncio.Task] = {}

    async def fetch(self, key: str, producer: Producer, ttl: int) -> Outcome:
        """Return the cached value for ``key`` or refresh it via ``producer``."""
        value = await self.cache.get(key)
        if value is not None:
            return Outcome.success(value, cached=True)

        # No await between lookup and insert: the check-and-set is atomic
        # with respect to other tasks on this loop.
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, producer, ttl))
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight refresh", cache_key=key)

        # shield: a cancelled caller must not cancel the refresh other
        # waiters depend on
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]

    async def _refresh(self, key: str, producer: Producer, ttl: int) -> Outcome:
        token = await self.cache.acquire_marker(key, self.lock_ttl)
        if token is None:
            value = await self._wait_for_peer(key)
            if value is not None:
                return Outcome.success(value, cached=True)
            token = await self.cache.acquire_marker(key, self.lock_ttl)

        try:
            # a refresh that finished between our miss and the marker
            value = await self.cache.get(key)
            if value is not None:
                return Outcome.success(value, cached=True)

            try:
                value = await producer()
            except Exception as e:
                logger.warning("Cache producer failed", cache_key=key,
                               error=f"{type(e).__name__}: {e}")
                return Outcome.unavailable(e)

            await self.cache.set(key, value, ttl)
            return Outcome.success(value)
        finally:
            if token is not None:
                await self.cache.release_marker(key, token)

    async def _wait_for_peer(self, key: str) -> Optional[Any]:
        """Poll while another process refreshes ``key``.

        Returns the peer's value, or None if the peer released its marker
        without storing one or ``lock_wait`` elapsed.
        """
        logger.debug("Waiting for peer refresh", cache_key=key)
        deadline = time.monotonic() + self.lock_wait
        while time.monotonic() < deadline:
            await asyncio.sleep(self.poll_interval)
            value = await self.cache.get(key)
            if value is not None:
                return value
            if not await self.cache.marker_held(key):
                return await self.cache.get(key)

        logger.warning("Timed out waiting for peer refresh", cache_key=key,
                       waited_seconds=self.lock_wait)
        return None
