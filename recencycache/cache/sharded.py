"""
Key-space partitioned LRU cache.

Each shard is an independent LRUCache with its own lock. Recency order and
eviction are scoped to a shard: the evicted entry is the least recently used
of its shard, not necessarily of the whole cache.
"""

import logging
from typing import Generic, Hashable, TypeVar

from recencycache.cache.lru_cache import (CacheStats, LRUCache, check_capacity,
                                          check_shards)

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
D = TypeVar("D")

DEFAULT_SHARDS = 8


class ShardedLRUCache(Generic[K, V]):
    def __init__(
        self, capacity: int, *, shards: int | None = None, debug: bool = False
    ) -> None:
        """
        :param capacity: Total number of entries across all shards.
        :param shards: Number of partitions, defaults to DEFAULT_SHARDS capped at capacity.
        """
        check_capacity(capacity)
        if shards is None:
            shards = min(DEFAULT_SHARDS, capacity)
        check_shards(capacity, shards)
        self._capacity = capacity
        base, extra = divmod(capacity, shards)
        self._shards: list[LRUCache[K, V]] = [
            LRUCache(base + (1 if i < extra else 0), debug=debug) for i in range(shards)
        ]
        logger.debug(f"Created sharded LRU cache: capacity={capacity} shards={shards}")

    def _shard(self, key: K) -> LRUCache[K, V]:
        return self._shards[hash(key) % len(self._shards)]

    def get(self, key: K, default: V | D | None = None) -> V | D | None:
        return self._shard(key).get(key, default)

    def put(self, key: K, value: V) -> None:
        self._shard(key).put(key, value)

    def delete(self, key: K) -> bool:
        return self._shard(key).delete(key)

    def peek(self, key: K, default: V | D | None = None) -> V | D | None:
        return self._shard(key).peek(key, default)

    def clear(self) -> None:
        for shard in self._shards:
            shard.clear()

    def size(self) -> int:
        # shards are locked one at a time, so this is not an atomic snapshot
        return sum(shard.size() for shard in self._shards)

    def capacity(self) -> int:
        return self._capacity

    @property
    def shard_count(self) -> int:
        return len(self._shards)

    def shard_capacities(self) -> list[int]:
        return [shard.capacity() for shard in self._shards]

    def stats(self) -> CacheStats:
        per_shard = [shard.stats() for shard in self._shards]
        return CacheStats(
            size=sum(s.size for s in per_shard),
            capacity=self._capacity,
            hits=sum(s.hits for s in per_shard),
            misses=sum(s.misses for s in per_shard),
            evictions=sum(s.evictions for s in per_shard),
            deletions=sum(s.deletions for s in per_shard),
        )

    def validate(self) -> None:
        for shard in self._shards:
            shard.validate()

    def __contains__(self, key: object) -> bool:
        return key in self._shard(key)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return self.size()
