"""Persistent key-value storage used behind the in-memory translation cache.

Responsibilities:
- Define the synchronous store protocol consumed by `PersistentCache`.
- Provide a filesystem-backed store (one file per key) and an in-memory store.
- Map storage exhaustion to `StorageQuotaExceededError` and other failures to `StorageError`.
"""

from __future__ import annotations

import errno
import os
from pathlib import Path
from typing import Protocol
from urllib.parse import quote, unquote

from ..errors import StorageError, StorageQuotaExceededError

_QUOTA_ERRNOS = frozenset({errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)})


class KeyValueStore(Protocol):
    """Protocol for synchronous string key-value persistence."""

    def is_available(self) -> bool:
        """Return whether the store can currently be read and written."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value for `key`, or `None` when missing."""

    def set_item(self, key: str, value: str) -> None:
        """Persist `value` under `key`, replacing any previous value."""

    def remove_item(self, key: str) -> None:
        """Delete `key`; deleting a missing key is a no-op."""

    def keys(self) -> list[str]:
        """Return all stored keys in deterministic order."""


class FileKeyValueStore:
    """Filesystem-backed store writing each key to its own UTF-8 file under `root`."""

    def __init__(self, root: Path, quota_bytes: int | None = None) -> None:
        """Initialize the store with a root directory and optional byte quota."""

        self.root = root
        self.quota_bytes = quota_bytes

    def _path_for(self, key: str) -> Path:
        return self.root / quote(key, safe="")

    def is_available(self) -> bool:
        """Create the root directory if needed and report whether it is writable."""

        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return self.root.is_dir() and os.access(self.root, os.W_OK)

    def get_item(self, key: str) -> str | None:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(f"Failed to read stored key `{key}`: {exc}") from exc

    def set_item(self, key: str, value: str) -> None:
        """Write `value` for `key`, enforcing the optional byte quota first."""

        path = self._path_for(key)
        payload = value.encode("utf-8")
        if self.quota_bytes is not None:
            projected = self.used_bytes() - self._size_of(path) + len(payload)
            if projected > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Storing key `{key}` would exceed the {self.quota_bytes}-byte quota."
                )
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(payload)
        except OSError as exc:
            if exc.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceededError(
                    f"Storage is full while writing key `{key}`."
                ) from exc
            raise StorageError(f"Failed to write stored key `{key}`: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            self._path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete stored key `{key}`: {exc}") from exc

    def keys(self) -> list[str]:
        """Return stored keys sorted by file name."""

        if not self.root.is_dir():
            return []
        try:
            names = sorted(path.name for path in self.root.iterdir() if path.is_file())
        except OSError as exc:
            raise StorageError(f"Failed to list stored keys under `{self.root}`: {exc}") from exc
        return [unquote(name) for name in names]

    def used_bytes(self) -> int:
        """Return the total size of all stored values in bytes."""

        if not self.root.is_dir():
            return 0
        return sum(self._size_of(path) for path in self.root.iterdir() if path.is_file())

    @staticmethod
    def _size_of(path: Path) -> int:
        try:
            return path.stat().st_size
        except FileNotFoundError:
            return 0


class MemoryKeyValueStore:
    """Dictionary-backed store with an optional item-count quota."""

    def __init__(self, quota_items: int | None = None, available: bool = True) -> None:
        self.items: dict[str, str] = {}
        self.quota_items = quota_items
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if (
            self.quota_items is not None
            and key not in self.items
            and len(self.items) >= self.quota_items
        ):
            raise StorageQuotaExceededError(
                f"Storing key `{key}` would exceed the {self.quota_items}-item quota."
            )
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self.items.keys())
