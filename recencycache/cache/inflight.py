"""
In-flight load registry for read-through caching.

The first task to miss on a key becomes the leader and loads it; later tasks
wait on the same PendingLoad and receive the leader's value from it directly,
so they never depend on the key still being cached when they wake up.
"""

from dataclasses import dataclass, field
from typing import Generic, Hashable, TypeVar

import trio

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class PendingLoad(Generic[V]):
    done: trio.Event = field(default_factory=trio.Event)
    value: V | None = None
    loaded: bool = False
    "False when the leader failed or was cancelled; waiters must try again"

    async def wait(self) -> tuple[bool, V | None]:
        await self.done.wait()
        return self.loaded, self.value


class InflightLoads(Generic[K, V]):
    def __init__(self) -> None:
        self._lock = trio.Lock()
        self._pending: dict[K, PendingLoad[V]] = {}

    async def join_or_lead(self, key: K) -> tuple[PendingLoad[V], bool]:
        """Returns the load for key and whether the caller must perform it."""
        async with self._lock:
            pending = self._pending.get(key)
            if pending is not None:
                return pending, False
            pending = self._pending[key] = PendingLoad()
            return pending, True

    async def finish(self, key: K, value: V | None = None, *, loaded: bool) -> None:
        """Publishes the leader's outcome to every waiter and forgets the key."""
        async with self._lock:
            pending = self._pending.pop(key, None)
        if pending is None:
            return
        pending.value = value
        pending.loaded = loaded
        pending.done.set()

    def pending(self) -> int:
        return len(self._pending)
