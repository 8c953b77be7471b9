"""Cache-aside layer over the call dispatcher.

:class:`CacheAsideLayer` memoises operation results in the shared
:class:`~akeeba_remote.cache.store.KeyValueStore`.  Results are stored as
JSON text keyed by site and method::

    <prefix>:<site id>:<method>
    <prefix>:<site id>:getBackupInfo:<backup_id>

Only ``getBackupInfo`` adds a sub-identifier, so per-backup records do not
overwrite each other; every other method shares one entry per site whatever
its parameters.

The cache is a pure performance optimisation: a hit returns exactly what a
miss would have returned (both go through a JSON round-trip).  There is no
single-flight guarantee; two concurrent misses on the same key both call
the remote site and the last write wins.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Mapping, Optional

from akeeba_remote.cache.store import KeyValueStore
from akeeba_remote.client.operations import GET_BACKUP_INFO, get_operation
from akeeba_remote.models import CacheConfig, Site
from akeeba_remote.output import get_output

if TYPE_CHECKING:
    from akeeba_remote.client.dispatcher import CallDispatcher

SUB_KEY_PARAMS: dict[str, str] = {GET_BACKUP_INFO: "backup_id"}


class CacheAsideLayer:
    """Get-or-compute wrapper around :meth:`CallDispatcher.call`.

    Args:
        dispatcher: Performs live calls.
        store: Shared store for cached JSON results.
        config: TTL default and key prefix.
    """

    def __init__(
        self,
        dispatcher: CallDispatcher,
        store: KeyValueStore,
        config: Optional[CacheConfig] = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._store = store
        self._config = config or CacheConfig()

    def make_key(
        self,
        site_id: Any,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Return the cache key for *method* on *site_id*."""
        key = f"{self._config.key_prefix}:{site_id}:{method}"
        sub_param = SUB_KEY_PARAMS.get(method)
        if sub_param and params and sub_param in params:
            key = f"{key}:{params[sub_param]}"
        return key

    def get_or_compute(
        self,
        site: Site,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        force_refresh: bool = False,
        ttl: Optional[int] = None,
    ) -> Any:
        """Return the cached result of *method* on *site*, calling out on a miss.

        Args:
            site: Site to query; the dispatcher is bound to it first.
            method: Wire name of the operation.
            params: Parameter bag for the operation.
            force_refresh: Skip the cache lookup and overwrite the entry.
            ttl: Entry lifetime in seconds (defaults to the configured TTL).

        Returns:
            The decoded result.

        Raises:
            UnknownOperationError: If *method* is not a known operation.
        """
        get_operation(method)
        key = self.make_key(site.id, method, params)
        output = get_output()

        self._dispatcher.bind(site)
        if not force_refresh:
            cached = self._store.get(key)
            if cached:
                output.debug(f"Cache hit: {key}")
                return json.loads(cached)

        output.debug(f"Cache {'refresh' if force_refresh else 'miss'}: {key}")
        self._dispatcher.bind(site)
        result = self._dispatcher.call(method, params)

        encoded = json.dumps(result)
        self._store.set_with_expiry(
            key, encoded, ttl if ttl is not None else self._config.ttl_seconds
        )
        return json.loads(encoded)

    def invalidate(
        self,
        site: Site,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Drop the cached entry for *method* on *site*.

        Returns:
            ``True`` if an entry was removed.  Stores without a ``delete``
            method are left untouched and ``False`` is returned.
        """
        delete = getattr(self._store, "delete", None)
        if delete is None:
            return False
        return bool(delete(self.make_key(site.id, method, params)))
