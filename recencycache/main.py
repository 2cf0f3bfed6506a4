#!/usr/bin/env python3
import argparse
import dataclasses
import logging
import random
import sys
import time

import trio

from recencycache.cache.lru_cache import LRUCache
from recencycache.config import CacheConfig, build_cache
from recencycache.errors import CacheError

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Exercise an in-memory LRU cache from many threads."
    )
    parser.add_argument(
        "--capacity", type=int, default=None,
        help="Maximum number of entries (default: $RECENCYCACHE_CAPACITY or 1024)",
    )
    parser.add_argument(
        "--shards", type=int, default=None,
        help="Independently locked partitions; >1 relaxes global LRU order (default: $RECENCYCACHE_SHARDS or 1)",
    )
    parser.add_argument("--threads", type=int, default=8, help="Worker threads for the stress run")
    parser.add_argument(
        "--ops-per-thread", type=int, default=10000, help="get/put calls per worker thread"
    )
    parser.add_argument(
        "--key-space", type=int, default=None,
        help="Number of distinct keys used by the workers (default: 2x capacity)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed for the workers")
    parser.add_argument("--skip-demo", action="store_true", help="Only run the stress test")
    parser.add_argument("--debug", action="store_true", help="Enable verbose logging and invariant checks")
    return parser.parse_args(argv)


def setup_logging(debug_mode):
    level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s", level=level
    )


def resolve_config(args) -> CacheConfig:
    # flags win over the environment, so only the merged result is range-checked
    env_config = CacheConfig.from_env(validate=False)
    return dataclasses.replace(
        env_config,
        capacity=args.capacity if args.capacity is not None else env_config.capacity,
        shards=args.shards if args.shards is not None else env_config.shards,
        debug=args.debug or env_config.debug,
    ).validate()


def run_demo() -> list[tuple[str, object]]:
    """Capacity 3 walkthrough; returns (operation, result) pairs in call order."""
    cache: LRUCache[int, str] = LRUCache(3)
    transcript: list[tuple[str, object]] = []

    cache.put(1, "Value 1")
    cache.put(2, "Value 2")
    cache.put(3, "Value 3")
    transcript.append(("get(1)", cache.get(1)))
    transcript.append(("get(2)", cache.get(2)))

    # 3 is now the least recently used
    cache.put(4, "Value 4")
    transcript.append(("get(3)", cache.get(3)))
    transcript.append(("get(4)", cache.get(4)))

    cache.put(2, "Updated Value 2")
    transcript.append(("get(1)", cache.get(1)))
    transcript.append(("get(2)", cache.get(2)))

    for op, result in transcript:
        logger.info(f"{op} -> {result!r}")
    return transcript


def _stress_worker(cache, worker_id: int, ops: int, key_space: int, seed: int) -> int:
    """Runs in a worker thread. Returns how many times size() > capacity() was observed."""
    rng = random.Random(seed * 1_000_003 + worker_id)
    capacity = cache.capacity()
    violations = 0
    for i in range(ops):
        key = rng.randrange(key_space)
        if rng.random() < 0.5:
            cache.get(key)
        else:
            cache.put(key, (worker_id, i))
        if i % 256 == 0 and cache.size() > capacity:
            violations += 1
    return violations


async def run_stress(cache, threads: int, ops: int, key_space: int, seed: int) -> int:
    results: list[int] = []
    limiter = trio.CapacityLimiter(max(1, threads))

    async def _run(worker_id: int):
        violations = await trio.to_thread.run_sync(
            _stress_worker, cache, worker_id, ops, key_space, seed, limiter=limiter
        )
        results.append(violations)

    async with trio.open_nursery() as nursery:
        for worker_id in range(threads):
            nursery.start_soon(_run, worker_id)
    return sum(results)


async def async_main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.debug)

    try:
        config = resolve_config(args)
        cache = build_cache(config)
    except CacheError as e:
        logger.error(f"Invalid cache configuration: {e}")
        return 1

    if args.threads < 1:
        logger.error("--threads must be >= 1")
        return 1
    if args.ops_per_thread < 0:
        logger.error("--ops-per-thread must be >= 0")
        return 1

    if not args.skip_demo:
        run_demo()

    key_space = args.key_space if args.key_space is not None else 2 * config.capacity
    if key_space < 1:
        logger.error("--key-space must be >= 1")
        return 1

    logger.info(
        f"Stress run: {args.threads} threads x {args.ops_per_thread} ops, "
        f"capacity={config.capacity} shards={config.shards} keys={key_space}"
    )
    started = time.perf_counter()
    violations = await run_stress(cache, args.threads, args.ops_per_thread, key_space, args.seed)
    elapsed = time.perf_counter() - started

    cache.validate()
    stats = cache.stats()
    logger.info(
        f"Done in {elapsed:.2f}s: size={stats.size}/{stats.capacity} hits={stats.hits} "
        f"misses={stats.misses} evictions={stats.evictions} hit_ratio={stats.hit_ratio:.2%}"
    )
    if violations:
        logger.error(f"Observed size above capacity {violations} times")
        return 1
    return 0


def cli_entry_point():
    try:
        sys.exit(trio.run(async_main))
    except KeyboardInterrupt:
        pass
    except CacheError as e:
        logging.critical(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli_entry_point()
