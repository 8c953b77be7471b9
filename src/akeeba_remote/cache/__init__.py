"""Shared result cache and call counters.

This package provides the cache-aside policy that memoises JSON API results
per site and method, the call counters, and the key-value store they share.

Classes:
    :class:`KeyValueStore` -- protocol of the shared store.
    :class:`DiskStore` -- :mod:`diskcache`-backed store.
    :class:`CallCounters` -- per-method and running-backups counters.
    :class:`CacheAsideLayer` -- get-or-compute over the dispatcher.
"""

from akeeba_remote.cache.cache_aside import CacheAsideLayer
from akeeba_remote.cache.counters import CallCounters
from akeeba_remote.cache.store import DiskStore, KeyValueStore

__all__ = ["CacheAsideLayer", "CallCounters", "DiskStore", "KeyValueStore"]
