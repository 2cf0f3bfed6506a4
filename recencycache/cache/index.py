from typing import Generic, Hashable, Iterable, TypeVar

from recencycache.errors import CacheInvariantError
from recencycache.types import Handle

K = TypeVar("K", bound=Hashable)


class KeyIndex(Generic[K]):
    """key -> handle of the arena Entry holding that key"""

    def __init__(self) -> None:
        self._map: dict[K, Handle] = {}

    def lookup(self, key: K) -> Handle | None:
        return self._map.get(key)

    def insert(self, key: K, handle: Handle) -> None:
        if key in self._map:
            raise CacheInvariantError(f"Key {key!r} is already indexed")
        self._map[key] = handle

    def remove(self, key: K) -> Handle:
        try:
            return self._map.pop(key)
        except KeyError:
            raise CacheInvariantError(f"Key {key!r} is not indexed") from None

    def items(self) -> Iterable[tuple[K, Handle]]:
        return self._map.items()

    def clear(self) -> None:
        self._map.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def __len__(self) -> int:
        return len(self._map)
