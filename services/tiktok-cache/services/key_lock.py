"""
Per-key mutual exclusion for the fetch-or-populate pipeline.

One asyncio.Lock per distinct key, created on first use. A lock is dropped
from the table once no task holds or waits on it, so the table only ever holds
keys that are currently in use.
"""
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, TypeVar

T = TypeVar("T")


@dataclass
class _Entry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class KeyedLock:
    """Table of locks keyed by string."""

    def __init__(self):
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def locked(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for key for the duration of the block; released on every exit path."""
        # No await between lookup and insert, so first touch is atomic on the loop
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    async def with_lock(self, key: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn while holding the lock for key."""
        async with self.hold(key):
            return await fn()
