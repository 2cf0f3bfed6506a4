"""
Doubly-linked recency ordering over EntryArena handles.
Front (after HEAD) is the most recently used entry, back (before TAIL) the least.
"""

from typing import Generic, Iterator, TypeVar

from recencycache.errors import CacheInvariantError
from recencycache.storage.arena import EntryArena
from recencycache.types import HEAD, TAIL, Handle

K = TypeVar("K")
V = TypeVar("V")


class RecencyList(Generic[K, V]):
    def __init__(self, arena: EntryArena[K, V]) -> None:
        self._arena = arena
        self._size = 0
        head = arena.get(HEAD)
        tail = arena.get(TAIL)
        head.next = TAIL
        tail.prev = HEAD

    def push_front(self, handle: Handle) -> None:
        """Links handle right after HEAD. handle must not be linked already."""
        arena = self._arena
        head = arena.get(HEAD)
        entry = arena.get(handle)
        first = head.next
        entry.prev = HEAD
        entry.next = first
        arena.get(first).prev = handle
        head.next = handle
        self._size += 1

    def remove(self, handle: Handle) -> None:
        arena = self._arena
        entry = arena.get(handle)
        arena.get(entry.prev).next = entry.next
        arena.get(entry.next).prev = entry.prev
        # leave the detached entry pointing at the sentinels, never at live data
        entry.prev = HEAD
        entry.next = TAIL
        self._size -= 1

    def move_to_front(self, handle: Handle) -> None:
        if self._arena.get(HEAD).next == handle:
            return
        self.remove(handle)
        self.push_front(handle)

    def back(self) -> Handle | None:
        last = self._arena.get(TAIL).prev
        if last == HEAD:
            return None
        return last

    def pop_back(self) -> Handle | None:
        """Unlinks and returns the least recently used handle, None when empty."""
        last = self.back()
        if last is None:
            return None
        self.remove(last)
        return last

    def clear(self) -> None:
        self._arena.get(HEAD).next = TAIL
        self._arena.get(TAIL).prev = HEAD
        self._size = 0

    def check(self) -> set[Handle]:
        """
        Walks the list in both directions and returns the set of linked handles.
        Raises CacheInvariantError if the links are broken or contain a cycle.
        """
        arena = self._arena
        seen: set[Handle] = set()
        prev = HEAD
        cur = arena.get(HEAD).next
        for _ in range(self._size):
            if cur in (HEAD, TAIL) or cur in seen:
                raise CacheInvariantError(
                    f"Recency list broken at handle {cur} after {len(seen)} steps"
                )
            entry = arena.get(cur)
            if entry.prev != prev:
                raise CacheInvariantError(
                    f"Handle {cur} has prev={entry.prev}, expected {prev}"
                )
            seen.add(cur)
            prev, cur = cur, entry.next
        if cur != TAIL or arena.get(TAIL).prev != prev:
            raise CacheInvariantError(
                f"Recency list does not reach TAIL in {self._size} steps"
            )
        return seen

    def __iter__(self) -> Iterator[Handle]:
        arena = self._arena
        cur = arena.get(HEAD).next
        while cur != TAIL:
            yield cur
            cur = arena.get(cur).next

    def __len__(self) -> int:
        return self._size
