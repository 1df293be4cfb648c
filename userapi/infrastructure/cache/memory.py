"""In-process cache backend on cachetools."""

import threading
import time
from fnmatch import fnmatchcase
from typing import Callable

from cachetools import TLRUCache

from userapi.domain.user.port.cache import CacheBackend


def _expires_at(_key: str, entry: tuple[str, int], now: float) -> float:
    return now + entry[1]


class MemoryCacheBackend(CacheBackend):
    """Bounded TTL cache for a single process.

    Entries carry their own TTL; when full, the least recently used entry
    is evicted first. Every operation holds a lock, so each key op is atomic
    even when the backend is shared between threads.
    """

    def __init__(self, max_entries: int = 10_000, timer: Callable[[], float] = time.monotonic):
        self._store: TLRUCache[str, tuple[str, int]] = TLRUCache(
            maxsize=max_entries, ttu=_expires_at, timer=timer
        )
        self._lock = threading.Lock()

    async def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._store.get(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._store[key] = (value, ttl_seconds)

    async def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            self._store.expire()
            matching = [k for k in self._store if fnmatchcase(k, pattern)]
            for key in matching:
                del self._store[key]
        return len(matching)

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            self._store.expire()
            return len(self._store)
