"""
In-process memory caches.

``LRUCache`` is a bounded, TTL-aware map used where a result must be
remembered for a while without growing forever (processor charge results
keyed by idempotency key). ``KeyedLocks`` hands out one ``asyncio.Lock``
per key so work on the same entity is serialized while unrelated keys run
concurrently.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


class LRUCache:
    """Async-safe LRU (Least Recently Used) cache with per-entry expiry."""

    def __init__(
        self,
        max_size: int = 1000,
        ttl_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.cache: "OrderedDict[Hashable, Tuple[Any, float]]" = OrderedDict()
        self.lock = asyncio.Lock()
        self.stats = {"hits": 0, "misses": 0, "evictions": 0, "expirations": 0}

    async def get(self, key: Hashable) -> Optional[Any]:
        """Get value from cache."""
        async with self.lock:
            if key not in self.cache:
                self.stats["misses"] += 1
                return None

            value, expiry_time = self.cache[key]

            if self.clock() > expiry_time:
                del self.cache[key]
                self.stats["expirations"] += 1
                self.stats["misses"] += 1
                return None

            self.cache.move_to_end(key)
            self.stats["hits"] += 1
            return value

    async def set(self, key: Hashable, value: Any, ttl: Optional[int] = None) -> None:
        """Set value in cache, evicting the least recently used entries when full."""
        async with self.lock:
            expiry_time = self.clock() + (ttl or self.ttl_seconds)

            if key in self.cache:
                del self.cache[key]
            while len(self.cache) >= self.max_size:
                self.cache.popitem(last=False)
                self.stats["evictions"] += 1

            self.cache[key] = (value, expiry_time)

    async def delete(self, key: Hashable) -> bool:
        async with self.lock:
            if key in self.cache:
                del self.cache[key]
                return True
            return False

    async def clear(self) -> None:
        async with self.lock:
            self.cache.clear()

    def __len__(self) -> int:
        return len(self.cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self.stats["hits"] + self.stats["misses"]
        hit_rate = (self.stats["hits"] / total_requests * 100) if total_requests > 0 else 0

        return {
            **self.stats,
            "size": len(self.cache),
            "max_size": self.max_size,
            "hit_rate": f"{hit_rate:.2f}%",
        }


class KeyedLocks:
    """
    One asyncio.Lock per key.

    Locks are dropped once nobody holds or waits on them, so the registry
    only ever contains keys with work in flight.

    Usage:
        async with order_locks.hold(order_id):
            ...
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    def hold(self, key: Hashable) -> "_KeyedLockContext":
        return _KeyedLockContext(self, key)

    async def _acquire(self, key: Hashable) -> None:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            await lock.acquire()
        except BaseException:
            self._release_waiter(key)
            raise

    def _release(self, key: Hashable) -> None:
        self._locks[key].release()
        self._release_waiter(key)

    def _release_waiter(self, key: Hashable) -> None:
        self._waiters[key] -= 1
        if self._waiters[key] == 0:
            del self._waiters[key]
            del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class _KeyedLockContext:
    def __init__(self, registry: KeyedLocks, key: Hashable):
        self.registry = registry
        self.key = key

    async def __aenter__(self):
        await self.registry._acquire(self.key)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.registry._release(self.key)
        return False
