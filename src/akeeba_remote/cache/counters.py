"""Per-method call counters and the running-backups counter.

Counters live in the shared :class:`~akeeba_remote.cache.store.KeyValueStore`
next to cached results:

* ``<prefix>:calls:<method>`` -- one per wire method, incremented on every
  dispatched call;
* ``<prefix>:backups_running`` -- incremented each time a backup is started
  (not when it completes).
"""

from __future__ import annotations

from akeeba_remote.cache.store import KeyValueStore


class CallCounters:
    """Increment and read call counters in a shared store.

    Args:
        store: The shared store.  Its ``increment`` must be atomic.
        prefix: Key prefix shared with the cache layer.
    """

    def __init__(self, store: KeyValueStore, prefix: str = "akeeba") -> None:
        self._store = store
        self._prefix = prefix

    def method_key(self, method: str) -> str:
        return f"{self._prefix}:calls:{method}"

    @property
    def running_key(self) -> str:
        return f"{self._prefix}:backups_running"

    def record_call(self, method: str) -> int:
        """Count one call of *method*; return the new total."""
        return self._store.increment(self.method_key(method))

    def record_backup_started(self) -> int:
        """Count one started backup; return the new total."""
        return self._store.increment(self.running_key)

    def count(self, method: str) -> int:
        """Number of calls recorded for *method*."""
        return int(self._store.get(self.method_key(method)) or 0)

    def running_backups(self) -> int:
        """Number of backups started."""
        return int(self._store.get(self.running_key) or 0)
