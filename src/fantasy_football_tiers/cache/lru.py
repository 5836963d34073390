from __future__ import annotations

import threading
import time
from collections import OrderedDict
from typing import TYPE_CHECKING

from fantasy_football_tiers.domain.cache import CacheStats

if TYPE_CHECKING:
    from collections.abc import Callable


class LruStore[K, V]:
    """Thread-safe LRU map with an optional time-to-live.

    Both ``get`` and ``put`` count as an access. When the store is full the
    least-recently-accessed key is evicted, regardless of insertion order.
    """

    def __init__(
        self,
        max_size: int,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be > 0, got {max_size}")
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._clock = clock
        self._items: OrderedDict[K, tuple[V, float]] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items

    def _expired(self, stored_at: float) -> bool:
        return self._ttl is not None and self._clock() - stored_at >= self._ttl

    def get(self, key: K) -> V | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                self._misses += 1
                return None
            value, stored_at = item
            if self._expired(stored_at):
                del self._items[key]
                self._misses += 1
                return None
            self._items.move_to_end(key)
            self._hits += 1
            return value

    def peek(self, key: K) -> V | None:
        """Read without touching recency or hit counters."""
        with self._lock:
            item = self._items.get(key)
            return None if item is None else item[0]

    def put(self, key: K, value: V, *, replace_if: Callable[[V], bool] | None = None) -> tuple[V, K | None]:
        """Store ``value`` and return ``(current value, evicted key)``.

        When ``replace_if`` is given and an existing value fails it, the
        existing value is kept (and still counts as accessed).
        """
        with self._lock:
            existing = self._items.get(key)
            if existing is not None:
                self._items.move_to_end(key)
                if replace_if is not None and not replace_if(existing[0]):
                    return existing[0], None
                self._items[key] = (value, self._clock())
                return value, None

            evicted: K | None = None
            if len(self._items) >= self._max_size:
                evicted, _ = self._items.popitem(last=False)
            self._items[key] = (value, self._clock())
            return value, evicted

    def pop(self, key: K) -> V | None:
        with self._lock:
            item = self._items.pop(key, None)
            return None if item is None else item[0]

    def discard(self, key: K, value: V) -> bool:
        """Remove ``key`` only while it still maps to ``value``."""
        with self._lock:
            item = self._items.get(key)
            if item is None or item[0] is not value:
                return False
            del self._items[key]
            return True

    def keys(self) -> list[K]:
        with self._lock:
            return list(self._items)

    def values(self) -> list[V]:
        with self._lock:
            return [value for value, _ in self._items.values()]

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._hits = 0
            self._misses = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(size=len(self._items), max_size=self._max_size, hits=self._hits, misses=self._misses)
