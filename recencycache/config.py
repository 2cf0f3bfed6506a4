"""
Cache configuration: a small frozen dataclass that can be filled from the
environment and turned into a cache instance.
"""

import os
from dataclasses import dataclass
from typing import Mapping

from recencycache.cache.lru_cache import LRUCache, check_capacity, check_shards
from recencycache.cache.sharded import ShardedLRUCache
from recencycache.errors import CacheConfigurationError

ENV_CAPACITY = "RECENCYCACHE_CAPACITY"
ENV_SHARDS = "RECENCYCACHE_SHARDS"
ENV_DEBUG = "RECENCYCACHE_DEBUG"

DEFAULT_CAPACITY = 1024

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"", "0", "false", "no", "off"}


@dataclass(frozen=True)
class CacheConfig:
    capacity: int = DEFAULT_CAPACITY
    shards: int = 1
    "1 keeps strict global LRU order; more shards trade that for less lock contention"
    debug: bool = False

    def validate(self) -> "CacheConfig":
        check_capacity(self.capacity)
        check_shards(self.capacity, self.shards)
        return self

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, *, validate: bool = True
    ) -> "CacheConfig":
        """
        Reads RECENCYCACHE_* variables. Malformed values always raise; pass
        validate=False to defer range checks until other overrides are merged in.
        """
        if environ is None:
            environ = os.environ
        config = cls(
            capacity=_env_int(environ, ENV_CAPACITY, DEFAULT_CAPACITY),
            shards=_env_int(environ, ENV_SHARDS, 1),
            debug=_env_bool(environ, ENV_DEBUG, False),
        )
        return config.validate() if validate else config


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise CacheConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise CacheConfigurationError(f"{name} must be a boolean, got {raw!r}")


def build_cache(config: CacheConfig) -> LRUCache | ShardedLRUCache:
    config.validate()
    if config.shards == 1:
        return LRUCache(config.capacity, debug=config.debug)
    return ShardedLRUCache(config.capacity, shards=config.shards, debug=config.debug)
