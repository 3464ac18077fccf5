"""Two-tier translation cache: in-memory LRU mirrored into a persistent store.

Responsibilities:
- Serve reads from memory first and fall back to the persistent store.
- Mirror every write into the store and delete mirrored keys evicted from memory.
- Preload recent persistent entries into memory at startup.
- Degrade to memory-only behavior when no persistent store is usable.

Persistent records are JSON objects `{"value": str, "timestamp": epoch_ms}`
stored under `livei18n_cache_<cache key>`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
import json
from typing import Callable

from ..errors import StorageError, StorageQuotaExceededError
from ..telemetry.logger import EventLogger
from .lru import DEFAULT_CACHE_SIZE, LRUCache, epoch_millis
from .store import KeyValueStore

STORAGE_PREFIX = "livei18n_cache_"
DEFAULT_PRELOAD_ITEMS = 50


@dataclass(frozen=True, slots=True)
class PersistentCacheStats:
    """Snapshot of both cache tiers."""

    memory_entries: int
    persistent_available: bool


def _decode_record(raw: str) -> tuple[str, float]:
    """Decode a persistent record into `(value, timestamp)` or raise `ValueError`."""

    payload = json.loads(raw)
    if not isinstance(payload, dict):
        raise ValueError("Persistent cache record must be a JSON object.")
    value = payload.get("value")
    timestamp = payload.get("timestamp")
    if not isinstance(value, str):
        raise ValueError("Persistent cache record is missing a string `value`.")
    if isinstance(timestamp, bool) or not isinstance(timestamp, int | float):
        raise ValueError("Persistent cache record is missing a numeric `timestamp`.")
    return value, float(timestamp)


def _encode_record(value: str, timestamp: float) -> str:
    return json.dumps({"value": value, "timestamp": timestamp}, ensure_ascii=False)


class PersistentCache:
    """Memory-first cache whose entries survive restarts through a `KeyValueStore`."""

    def __init__(
        self,
        store: KeyValueStore | None,
        max_memory_size: int = DEFAULT_CACHE_SIZE,
        ttl_hours: float = 1.0,
        *,
        clock: Callable[[], float] = epoch_millis,
        logger: EventLogger | None = None,
    ) -> None:
        """Build the memory tier and probe the persistent store."""

        self._clock = clock
        self._memory = LRUCache(max_memory_size, ttl_hours, clock=clock)
        self._logger = logger.child("cache") if logger is not None else EventLogger(component="cache")
        self._store = self._probe_store(store)

    def _probe_store(self, store: KeyValueStore | None) -> KeyValueStore | None:
        if store is None:
            self._logger.warning("persistent_unavailable", reason="no_store")
            return None
        try:
            available = store.is_available()
        except Exception as exc:
            self._logger.warning(
                "persistent_unavailable", reason="probe_failed", error_type=type(exc).__name__
            )
            return None
        if not available:
            self._logger.warning("persistent_unavailable", reason="store_unavailable")
            return None
        self._logger.info("persistent_ready")
        return store

    @property
    def max_size(self) -> int:
        return self._memory.max_size

    @property
    def ttl_ms(self) -> float:
        return self._memory.ttl_ms

    @property
    def persistent_available(self) -> bool:
        return self._store is not None

    def _storage_key(self, key: str) -> str:
        return STORAGE_PREFIX + key

    def _namespaced_keys(self) -> list[str]:
        if self._store is None:
            return []
        return [key for key in self._store.keys() if key.startswith(STORAGE_PREFIX)]

    def _remove_storage_key(self, storage_key: str) -> None:
        if self._store is None:
            return
        try:
            self._store.remove_item(storage_key)
        except StorageError as exc:
            self._logger.warning("persistent_delete_failed", key=storage_key, error=str(exc))

    def _on_evict(self, evicted_key: str) -> None:
        """Keep the persistent tier in sync with memory evictions."""

        self._remove_storage_key(self._storage_key(evicted_key))

    def get(self, key: str) -> str | None:
        """Return a live value from memory, or warm memory from the persistent tier."""

        value = self._memory.get(key)
        if value is not None:
            return value
        if self._store is None:
            return None

        storage_key = self._storage_key(key)
        try:
            raw = self._store.get_item(storage_key)
        except StorageError as exc:
            self._logger.warning("persistent_read_failed", key=key, error=str(exc))
            return None
        if raw is None:
            return None

        try:
            stored_value, timestamp = _decode_record(raw)
        except ValueError:
            self._logger.warning("persistent_record_invalid", key=key)
            self._remove_storage_key(storage_key)
            return None

        if self._memory.is_expired(timestamp):
            self._remove_storage_key(storage_key)
            return None

        self._memory.set(key, stored_value, self._on_evict)
        return stored_value

    def set(self, key: str, value: str) -> None:
        """Write to memory, then mirror the value into persistent storage best-effort."""

        self._memory.set(key, value, self._on_evict)
        if self._store is None:
            return
        try:
            self._store.set_item(self._storage_key(key), _encode_record(value, self._clock()))
        except StorageQuotaExceededError:
            self._logger.warning("persistent_quota_exceeded", key=key)
            self.clear_expired_items()
        except StorageError as exc:
            self._logger.warning("persistent_write_failed", key=key, error=str(exc))

    def clear(self) -> None:
        """Clear memory and delete every namespaced persistent key."""

        self._memory.clear()
        if self._store is None:
            return
        try:
            storage_keys = self._namespaced_keys()
        except StorageError as exc:
            self._logger.warning("persistent_clear_failed", error=str(exc))
            return
        for storage_key in storage_keys:
            self._remove_storage_key(storage_key)

    def size(self) -> int:
        """Return the memory-tier entry count."""

        return self._memory.size()

    def stats(self) -> PersistentCacheStats:
        return PersistentCacheStats(
            memory_entries=self._memory.size(),
            persistent_available=self._store is not None,
        )

    def clear_expired_items(self) -> int:
        """Delete expired or unparsable persistent records and return how many were removed."""

        if self._store is None:
            return 0
        try:
            storage_keys = self._namespaced_keys()
        except StorageError as exc:
            self._logger.warning("persistent_cleanup_failed", error=str(exc))
            return 0

        now = self._clock()
        cleared = 0
        for storage_key in storage_keys:
            try:
                raw = self._store.get_item(storage_key)
                if raw is None:
                    continue
                _, timestamp = _decode_record(raw)
                expired = self._memory.is_expired(timestamp, now)
            except (StorageError, ValueError):
                expired = True
            if not expired:
                continue
            self._remove_storage_key(storage_key)
            cleared += 1

        if cleared:
            self._logger.info("persistent_expired_cleared", count=cleared)
        return cleared

    async def preload(self, max_items: int = DEFAULT_PRELOAD_ITEMS) -> int:
        """Load up to `max_items` unexpired persistent entries into memory.

        Expired and unparsable records are deleted. Storage failures are logged
        and end the preload early; nothing is raised. Returns the number of
        entries loaded.
        """

        if self._store is None or max_items <= 0:
            return 0
        try:
            storage_keys = self._namespaced_keys()[:max_items]
        except StorageError as exc:
            self._logger.warning("preload_failed", error=str(exc))
            return 0

        now = self._clock()
        loaded = 0
        for storage_key in storage_keys:
            try:
                raw = self._store.get_item(storage_key)
            except StorageError as exc:
                self._logger.warning("preload_failed", error=str(exc))
                break
            if raw is not None:
                try:
                    value, timestamp = _decode_record(raw)
                except ValueError:
                    self._remove_storage_key(storage_key)
                else:
                    if self._memory.is_expired(timestamp, now):
                        self._remove_storage_key(storage_key)
                    else:
                        key = storage_key[len(STORAGE_PREFIX):]
                        if key not in self._memory:
                            self._memory.set(key, value, self._on_evict)
                            loaded += 1
            await asyncio.sleep(0)

        if loaded:
            self._logger.info("preload_complete", loaded=loaded)
        return loaded
