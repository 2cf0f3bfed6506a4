from recencycache.cache.async_cache import AsyncLRUCache
from recencycache.cache.lru_cache import CacheStats, LRUCache
from recencycache.cache.sharded import ShardedLRUCache
from recencycache.config import CacheConfig, build_cache
from recencycache.errors import (CacheConfigurationError, CacheError,
                                 CacheInvariantError)

__all__ = [
    "AsyncLRUCache",
    "CacheConfig",
    "CacheConfigurationError",
    "CacheError",
    "CacheInvariantError",
    "CacheStats",
    "LRUCache",
    "ShardedLRUCache",
    "build_cache",
]
