"""Translation cache layers.

This package defines the canonical cache-key algorithm, the in-memory LRU
cache, persistent key-value stores, and the two-tier persistent cache.
"""

from typing import Protocol

from .keys import canonical_record, compute_cache_key, rolling_hash
from .lru import DEFAULT_CACHE_SIZE, CacheEntry, LRUCache
from .persistent import STORAGE_PREFIX, PersistentCache, PersistentCacheStats
from .store import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore


class TranslationCache(Protocol):
    """Operations the translation gateway needs from either cache implementation."""

    @property
    def max_size(self) -> int:
        """Return the maximum number of in-memory entries."""

    def get(self, key: str) -> str | None:
        """Return a live cached value, or `None`."""

    def set(self, key: str, value: str) -> None:
        """Store a value under `key`."""

    def clear(self) -> None:
        """Remove all cached values."""

    def size(self) -> int:
        """Return the in-memory entry count."""


__all__ = [
    "CacheEntry",
    "DEFAULT_CACHE_SIZE",
    "FileKeyValueStore",
    "KeyValueStore",
    "LRUCache",
    "MemoryKeyValueStore",
    "PersistentCache",
    "PersistentCacheStats",
    "STORAGE_PREFIX",
    "TranslationCache",
    "canonical_record",
    "compute_cache_key",
    "rolling_hash",
]
