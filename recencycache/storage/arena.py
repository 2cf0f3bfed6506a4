"""
Slab storage for cache entries.
Entries are addressed by integer handles; nothing outside the arena holds an Entry.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from recencycache.errors import CacheInvariantError
from recencycache.types import FIRST_DATA_HANDLE, HEAD, TAIL, Handle

K = TypeVar("K")
V = TypeVar("V")


@dataclass(slots=True)
class Entry(Generic[K, V]):
    key: K
    value: V
    prev: Handle = HEAD
    "neighbour towards the front (more recently used)"
    next: Handle = TAIL
    "neighbour towards the back (less recently used)"


class EntryArena(Generic[K, V]):
    def __init__(self) -> None:
        # Slot -> Entry, None for released slots
        self._slots: list[Entry[Any, Any] | None] = [
            Entry(key=None, value=None, prev=HEAD, next=TAIL),
            Entry(key=None, value=None, prev=HEAD, next=TAIL),
        ]
        self._free: list[Handle] = []
        self._live = 0

    def allocate(self, key: K, value: V) -> Handle:
        entry: Entry[K, V] = Entry(key=key, value=value)
        if self._free:
            handle = self._free.pop()
            self._slots[handle] = entry
        else:
            handle = len(self._slots)
            self._slots.append(entry)
        self._live += 1
        return handle

    def get(self, handle: Handle) -> Entry[K, V]:
        """Returns the entry (or sentinel) stored at handle."""
        try:
            entry = self._slots[handle] if handle >= 0 else None
        except IndexError:
            entry = None
        if entry is None:
            raise CacheInvariantError(f"Dangling handle {handle}")
        return entry

    def release(self, handle: Handle) -> Entry[K, V]:
        """Frees the slot so it can be reused by a later allocate()."""
        if handle < FIRST_DATA_HANDLE:
            raise CacheInvariantError(f"Sentinel handle {handle} cannot be released")
        entry = self.get(handle)
        # drop our reference so the value can be collected
        self._slots[handle] = None
        self._free.append(handle)
        self._live -= 1
        return entry

    def clear(self) -> None:
        del self._slots[FIRST_DATA_HANDLE:]
        self._free.clear()
        self._live = 0
        self.get(HEAD).next = TAIL
        self.get(TAIL).prev = HEAD

    def __len__(self) -> int:
        return self._live
