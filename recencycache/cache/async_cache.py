"""
Trio-facing wrapper around LRUCache.

The wrapped cache does its own locking with a short, non-blocking critical
section, so the async methods call it directly from the event loop.
get_or_load() adds read-through loading: concurrent misses on the same key
trigger a single load whose result is handed to every waiting task.
"""

import logging
from typing import Awaitable, Callable, Generic, Hashable, TypeVar

import trio

from recencycache.cache.lru_cache import CacheStats, LRUCache
from recencycache.cache.inflight import InflightLoads

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISS = object()


class AsyncLRUCache(Generic[K, V]):
    def __init__(self, cache: LRUCache[K, V]) -> None:
        self._cache = cache
        self._inflight: InflightLoads[K, V] = InflightLoads()

    @classmethod
    def with_capacity(cls, capacity: int, *, debug: bool = False) -> "AsyncLRUCache[K, V]":
        return cls(LRUCache(capacity, debug=debug))

    @property
    def cache(self) -> LRUCache[K, V]:
        return self._cache

    async def get(self, key: K) -> V | None:
        return self._cache.get(key)

    async def put(self, key: K, value: V) -> None:
        self._cache.put(key, value)

    async def delete(self, key: K) -> bool:
        return self._cache.delete(key)

    async def clear(self) -> None:
        self._cache.clear()

    async def stats(self) -> CacheStats:
        return self._cache.stats()

    async def get_or_load(self, key: K, loader: Callable[[K], Awaitable[V]]) -> V:
        """
        Returns the cached value for key, calling loader(key) on a miss.
        Only one task loads a given key at a time; the others wait for it and
        receive its value even if the cache has already evicted the key. If the
        leader's load fails, the error goes to the leader and a waiter takes over.
        """
        while True:
            value = self._cache.get(key, _MISS)
            if value is not _MISS:
                return value  # type: ignore[return-value]

            pending, leader = await self._inflight.join_or_lead(key)
            if not leader:
                loaded, value = await pending.wait()
                if loaded:
                    return value  # type: ignore[return-value]
                continue

            loaded = False
            value = None
            try:
                value = await loader(key)
                self._cache.put(key, value)
                loaded = True
                return value
            except Exception as e:
                logger.warning(f"Loader failed for {key!r}: {e}")
                raise
            finally:
                # waiters must be released even if we are being cancelled
                with trio.CancelScope(shield=True):
                    await self._inflight.finish(key, value, loaded=loaded)
