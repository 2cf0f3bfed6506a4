"""
Fixed-capacity least-recently-used cache.

Concurrency:
  - every public call holds one threading.Lock for its whole duration
  - get() promotes the entry to most recently used
  - put() inserts/updates and evicts exactly one LRU entry on overflow
"""

import logging
import threading
from dataclasses import dataclass
from typing import Generic, Hashable, TypeVar

from recencycache.cache.index import KeyIndex
from recencycache.cache.recency_list import RecencyList
from recencycache.errors import CacheConfigurationError, CacheInvariantError
from recencycache.storage.arena import EntryArena

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")
D = TypeVar("D")


@dataclass(frozen=True)
class CacheStats:
    size: int
    capacity: int
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    deletions: int = 0

    @property
    def hit_ratio(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


def check_capacity(capacity) -> int:
    # bool is an int subclass but never a meaningful capacity
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        raise CacheConfigurationError(
            f"capacity must be an integer, got {type(capacity).__name__}"
        )
    if capacity < 1:
        raise CacheConfigurationError("capacity must be >= 1", capacity=capacity)
    return capacity


def check_shards(capacity: int, shards) -> int:
    if isinstance(shards, bool) or not isinstance(shards, int) or shards < 1:
        raise CacheConfigurationError("shards must be an integer >= 1", shards=shards)
    if shards > capacity:
        raise CacheConfigurationError(
            "every shard needs at least one slot", capacity=capacity, shards=shards
        )
    return shards


class LRUCache(Generic[K, V]):
    def __init__(self, capacity: int, *, debug: bool = False) -> None:
        """
        :param capacity: Maximum number of entries, fixed for the cache lifetime.
        :param debug: Validate index/list consistency after every mutation.
        """
        self._capacity = check_capacity(capacity)
        self._debug = debug
        self._lock = threading.Lock()

        self._arena: EntryArena[K, V] = EntryArena()
        self._index: KeyIndex[K] = KeyIndex()
        self._recency: RecencyList[K, V] = RecencyList(self._arena)

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._deletions = 0
        logger.debug(f"Created LRU cache with capacity {capacity}")

    # =========================================================================
    # Public API
    # =========================================================================

    def get(self, key: K, default: V | D | None = None) -> V | D | None:
        """Returns the cached value and marks it most recently used, or default on a miss."""
        with self._lock:
            handle = self._index.lookup(key)
            if handle is None:
                self._misses += 1
                return default
            self._hits += 1
            self._recency.move_to_front(handle)
            return self._arena.get(handle).value

    def put(self, key: K, value: V) -> None:
        with self._lock:
            handle = self._index.lookup(key)
            if handle is not None:
                self._arena.get(handle).value = value
                self._recency.move_to_front(handle)
            else:
                handle = self._arena.allocate(key, value)
                self._index.insert(key, handle)
                self._recency.push_front(handle)
                if len(self._index) > self._capacity:
                    self._evict_one()
            if self._debug:
                self._validate_locked()

    def delete(self, key: K) -> bool:
        """Removes key without counting it as an eviction. Returns whether it was present."""
        with self._lock:
            handle = self._index.lookup(key)
            if handle is None:
                return False
            self._recency.remove(handle)
            self._index.remove(key)
            self._arena.release(handle)
            self._deletions += 1
            if self._debug:
                self._validate_locked()
            return True

    def peek(self, key: K, default: V | D | None = None) -> V | D | None:
        """Like get() but leaves recency order and hit/miss counters untouched."""
        with self._lock:
            handle = self._index.lookup(key)
            if handle is None:
                return default
            return self._arena.get(handle).value

    def clear(self) -> None:
        with self._lock:
            dropped = len(self._index)
            self._recency.clear()
            self._index.clear()
            self._arena.clear()
            logger.debug(f"Cleared {dropped} entries")
            if self._debug:
                self._validate_locked()

    def size(self) -> int:
        with self._lock:
            return len(self._index)

    def capacity(self) -> int:
        return self._capacity

    def keys(self) -> list[K]:
        """Snapshot of the keys, most recently used first."""
        with self._lock:
            return [self._arena.get(h).key for h in self._recency]

    def items(self) -> list[tuple[K, V]]:
        """Snapshot of (key, value) pairs, most recently used first."""
        with self._lock:
            pairs = []
            for handle in self._recency:
                entry = self._arena.get(handle)
                pairs.append((entry.key, entry.value))
            return pairs

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._index),
                capacity=self._capacity,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                deletions=self._deletions,
            )

    def validate(self) -> None:
        """Raises CacheInvariantError if the index and recency list disagree."""
        with self._lock:
            self._validate_locked()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._index

    def __len__(self) -> int:
        return self.size()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(capacity={self._capacity}, size={len(self._index)})"

    # =========================================================================
    # Internals (lock held)
    # =========================================================================

    def _evict_one(self) -> None:
        handle = self._recency.pop_back()
        if handle is None:
            raise CacheInvariantError(
                "Overflow with an empty recency list", capacity=self._capacity
            )
        entry = self._arena.release(handle)
        removed = self._index.remove(entry.key)
        if removed != handle:
            raise CacheInvariantError(
                f"Index maps {entry.key!r} to {removed}, evicted handle was {handle}"
            )
        self._evictions += 1
        logger.debug(f"Evicted {entry.key!r}")

    def _validate_locked(self) -> None:
        size = len(self._index)
        if size != len(self._recency) or size != len(self._arena):
            raise CacheInvariantError(
                f"Size mismatch: index={size} list={len(self._recency)} arena={len(self._arena)}"
            )
        if size > self._capacity:
            raise CacheInvariantError(
                f"Size {size} exceeds capacity", capacity=self._capacity
            )
        linked = self._recency.check()
        for key, handle in self._index.items():
            if handle not in linked:
                raise CacheInvariantError(f"Handle {handle} for {key!r} is not in the recency list")
            if self._arena.get(handle).key != key:
                raise CacheInvariantError(f"Index maps {key!r} to the entry of another key")
