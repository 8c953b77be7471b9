"""Shared key-value store for cached results and call counters.

The cache layer and the counters only depend on the :class:`KeyValueStore`
protocol (``get``, ``set_with_expiry``, ``increment``), so any shared store
with atomic increments can back them.  :class:`DiskStore` is the bundled
implementation; it persists entries on the filesystem using
:mod:`diskcache`, which is safe to share between processes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol

import diskcache


class KeyValueStore(Protocol):
    """Minimal interface of the shared counter/cache store."""

    def get(self, key: str) -> Optional[str]:
        """Return the value stored under *key*, or ``None``."""
        ...

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key* for *ttl_seconds*."""
        ...

    def increment(self, key: str) -> int:
        """Atomically add one to the counter at *key* and return the new value."""
        ...


class DiskStore:
    """Disk-backed :class:`KeyValueStore` built on :class:`diskcache.Cache`.

    Args:
        directory: Root directory for the store.  A ``store/`` subdirectory
            is created inside it.

    Example::

        store = DiskStore("/tmp/akeeba")
        store.set_with_expiry("akeeba:1:getVersion", '{"version": "1.0"}', 300)
        store.increment("akeeba:calls:getVersion")
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory) / "store"
        self._cache = diskcache.Cache(str(self._directory))

    @property
    def directory(self) -> Path:
        """Filesystem location of the store."""
        return self._directory

    def get(self, key: str) -> Optional[Any]:
        """Return the value stored under *key*, or ``None`` on a miss or expiry."""
        return self._cache.get(key)

    def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* under *key*; it expires after *ttl_seconds*."""
        self._cache.set(key, value, expire=ttl_seconds)

    def increment(self, key: str) -> int:
        """Atomically increment the counter at *key*, starting from zero."""
        return self._cache.incr(key, delta=1, default=0)

    def delete(self, key: str) -> bool:
        """Remove *key*; return ``True`` if it existed."""
        return bool(self._cache.delete(key))

    def clear(self) -> None:
        """Remove all entries."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()

    def __enter__(self) -> DiskStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
