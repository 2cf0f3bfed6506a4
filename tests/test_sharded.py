import pytest

from recencycache.cache.sharded import ShardedLRUCache
from recencycache.errors import CacheConfigurationError


def test_capacity_split_across_shards():
    cache = ShardedLRUCache(10, shards=3)
    assert cache.shard_count == 3
    assert cache.shard_capacities() == [4, 3, 3]
    assert cache.capacity() == 10


@pytest.mark.parametrize(
    "capacity,shards",
    [(0, 1), (2, 3), (10, 0), (10, -2)],
)
def test_invalid_configuration(capacity, shards):
    with pytest.raises(CacheConfigurationError):
        ShardedLRUCache(capacity, shards=shards)


def test_basic_operations():
    cache = ShardedLRUCache(8, shards=4, debug=True)
    for i in range(8):
        cache.put(i, str(i))

    assert cache.size() == 8
    assert all(cache.get(i) == str(i) for i in range(8))
    assert 3 in cache
    assert cache.peek(3) == "3"
    assert cache.delete(3) is True
    assert 3 not in cache
    assert len(cache) == 7

    cache.clear()
    assert cache.size() == 0
    cache.validate()


def test_eviction_is_per_shard():
    """
    Int keys hash to themselves, so even keys share shard 0 of 2.
    Shard 0 evicts its own LRU entry although the cache as a whole has room.
    """
    cache = ShardedLRUCache(4, shards=2)
    cache.put(1, "odd")
    cache.put(0, "a")
    cache.put(2, "b")
    cache.put(4, "c")

    assert cache.size() == 3
    assert cache.get(0) is None
    assert cache.get(1) == "odd"
    assert cache.get(2) == "b"
    assert cache.get(4) == "c"


def test_size_bounded_globally():
    cache = ShardedLRUCache(12, shards=4)
    for i in range(500):
        cache.put(f"key-{i}", i)
        assert cache.size() <= cache.capacity()


def test_stats_are_aggregated():
    cache = ShardedLRUCache(4, shards=2)
    for i in range(6):
        cache.put(i, i)
    cache.get(5)
    cache.get(0)

    stats = cache.stats()
    assert stats.size == 4
    assert stats.capacity == 4
    assert stats.evictions == 2
    assert stats.hits == 1
    assert stats.misses == 1


@pytest.mark.parametrize("capacity,expected", [(1, 1), (4, 4), (8, 8), (100, 8)])
def test_default_shard_count_fits_capacity(capacity, expected):
    cache = ShardedLRUCache(capacity)
    assert cache.shard_count == expected
    assert sum(cache.shard_capacities()) == capacity
