import random
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from recencycache.cache.lru_cache import LRUCache

NUM_THREADS = 8


def test_disjoint_keys_all_survive_when_they_fit():
    """
    Scenario: 8 threads write disjoint key sets that fit in the cache together.
    Expectation: every write is visible afterwards, nothing is evicted.
    """
    keys_per_thread = 200
    cache = LRUCache(NUM_THREADS * keys_per_thread)

    def writer(tid):
        for i in range(keys_per_thread):
            cache.put((tid, i), tid * 10_000 + i)
        return [cache.get((tid, i)) for i in range(keys_per_thread)]

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as pool:
        results = list(pool.map(writer, range(NUM_THREADS)))

    for tid, values in enumerate(results):
        assert values == [tid * 10_000 + i for i in range(keys_per_thread)]
    assert cache.size() == NUM_THREADS * keys_per_thread
    assert cache.stats().evictions == 0
    cache.validate()


def test_contended_small_cache_stays_consistent():
    """
    Scenario: many threads hammer a small cache with overlapping keys.
    Expectation: structure stays valid and full, lookup counters add up.
    """
    capacity = 16
    cache = LRUCache(capacity)
    ops = 5000

    def worker(tid):
        rng = random.Random(tid)
        gets = 0
        for i in range(ops):
            key = rng.randrange(64)
            if rng.random() < 0.5:
                cache.get(key)
                gets += 1
            else:
                cache.put(key, (tid, i))
        return gets

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as pool:
        total_gets = sum(pool.map(worker, range(NUM_THREADS)))

    cache.validate()
    stats = cache.stats()
    assert stats.size == capacity
    # every get is counted exactly once
    assert stats.hits + stats.misses == total_gets


def test_size_bound_observed_while_writing():
    capacity = 10
    cache = LRUCache(capacity)
    stop = threading.Event()
    observed = []

    def observer():
        while True:
            observed.append(cache.size())
            if stop.is_set():
                break

    def writer(tid):
        for i in range(3000):
            cache.put((tid, i), i)

    watcher = threading.Thread(target=observer)
    watcher.start()
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            list(pool.map(writer, range(4)))
    finally:
        stop.set()
        watcher.join()

    assert observed
    assert max(observed) <= capacity
    cache.validate()


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_same_key_writers_leave_one_of_their_values(seed):
    cache = LRUCache(4, debug=True)
    written = set()
    lock = threading.Lock()

    def writer(tid):
        rng = random.Random(seed * 100 + tid)
        for _ in range(500):
            value = (tid, rng.random())
            cache.put("shared", value)
            with lock:
                written.add(value)

    with ThreadPoolExecutor(max_workers=NUM_THREADS) as pool:
        list(pool.map(writer, range(NUM_THREADS)))

    assert cache.size() == 1
    assert cache.get("shared") in written
