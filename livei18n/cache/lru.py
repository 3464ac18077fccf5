"""In-memory LRU cache with a uniform time-to-live.

Responsibilities:
- Hold translated strings keyed by cache key, bounded by `max_size`.
- Treat entries older than the TTL as absent and purge them on access.
- Evict the least recently used entry on overflow and report it to the caller.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import time
from typing import Callable

DEFAULT_CACHE_SIZE = 500
_MILLISECONDS_PER_HOUR = 60 * 60 * 1000

EvictionCallback = Callable[[str], None]


def epoch_millis() -> float:
    """Return the current wall-clock time in epoch milliseconds."""

    return time.time() * 1000.0


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached value with the epoch-millisecond time it was stored."""

    value: str
    stored_at_ms: float


class LRUCache:
    """Bounded least-recently-used cache; most recently used keys sit last."""

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_SIZE,
        ttl_hours: float = 1.0,
        clock: Callable[[], float] = epoch_millis,
    ) -> None:
        if max_size < 1:
            raise ValueError("`max_size` must be a positive integer.")
        if ttl_hours <= 0:
            raise ValueError("`ttl_hours` must be a positive number.")
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._max_size = max_size
        self._ttl_ms = ttl_hours * _MILLISECONDS_PER_HOUR
        self._clock = clock

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def ttl_ms(self) -> float:
        return self._ttl_ms

    def is_expired(self, stored_at_ms: float, now_ms: float | None = None) -> bool:
        """Return whether a value stored at `stored_at_ms` is past this cache's TTL."""

        now = self._clock() if now_ms is None else now_ms
        return now - stored_at_ms > self._ttl_ms

    def get(self, key: str) -> str | None:
        """Return a live value and mark it most recently used."""

        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.is_expired(entry.stored_at_ms):
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: str, value: str, on_evict: EvictionCallback | None = None) -> None:
        """Store `value`, evicting the least recently used key when a new key overflows."""

        entry = CacheEntry(value=value, stored_at_ms=self._clock())
        if key in self._entries:
            # Overwrite keeps the current recency position.
            self._entries[key] = entry
            return
        if len(self._entries) >= self._max_size:
            evicted_key, _ = self._entries.popitem(last=False)
            if on_evict is not None:
                on_evict(evicted_key)
        self._entries[key] = entry

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def keys(self) -> list[str]:
        """Return cached keys from least to most recently used."""

        return list(self._entries.keys())
