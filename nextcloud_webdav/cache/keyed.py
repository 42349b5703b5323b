"""Thread-safe bounded in-memory cache."""

import threading
from typing import Callable, Generic, Hashable, Optional, TypeVar

from cachetools import LRUCache

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class KeyedCache(Generic[K, V]):
    """Mutex-guarded LRU map.

    Eviction is delegated to `cachetools.LRUCache`: `maxsize` bounds the entry count, or
    the total of `getsizeof(value)` when a size function is given.
    """

    def __init__(
        self,
        maxsize: float,
        getsizeof: Optional[Callable[[V], float]] = None,
    ):
        self._cache: LRUCache = LRUCache(maxsize=maxsize, getsizeof=getsizeof)
        self._lock = threading.RLock()

    def get(self, key: K) -> Optional[V]:
        with self._lock:
            return self._cache.get(key)

    def set(self, key: K, value: V) -> None:
        with self._lock:
            try:
                self._cache[key] = value
            except ValueError:
                # Value larger than the whole cache; drop any stale entry instead
                self._cache.pop(key, None)

    def remove(self, key: K) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def remove_all(self) -> None:
        with self._lock:
            self._cache.clear()

    def update(self, key: K, fn: Callable[[Optional[V]], Optional[V]]) -> None:
        """Atomically replace the value for `key` with `fn(current)`; None removes it."""
        with self._lock:
            value = fn(self._cache.get(key))
            if value is None:
                self._cache.pop(key, None)
            else:
                self.set(key, value)

    def items(self) -> list[tuple[K, V]]:
        """Snapshot of the current entries."""
        with self._lock:
            return list(self._cache.items())

    def __contains__(self, key: K) -> bool:
        with self._lock:
            return key in self._cache

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)
