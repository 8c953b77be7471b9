"""High-level entry point wiring every component together.

:class:`AkeebaRemote` builds the default stack -- an
:class:`~akeeba_remote.client.transport.HttpxTransport`, a
:class:`~akeeba_remote.cache.store.DiskStore` in the cache directory, the
call counters, a :class:`~akeeba_remote.client.dispatcher.CallDispatcher`
and a :class:`~akeeba_remote.cache.cache_aside.CacheAsideLayer` -- while
letting callers substitute their own transport or store.

Example::

    from akeeba_remote import AkeebaRemote, Site

    site = Site(id=7, url="https://example.com/", secret_key="s3cret")
    with AkeebaRemote() as remote:
        backups = remote.fetch(site, "listBackups")
        remote.call(site, "startBackup", {"profile": "2"})
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from akeeba_remote.cache.cache_aside import CacheAsideLayer
from akeeba_remote.cache.counters import CallCounters
from akeeba_remote.cache.store import DiskStore, KeyValueStore
from akeeba_remote.client.dispatcher import CallDispatcher
from akeeba_remote.client.transport import HttpxTransport, Transport
from akeeba_remote.config import get_cache_dir, resolve_config
from akeeba_remote.models import ClientConfig, Site


class AkeebaRemote:
    """Cached client for the Akeeba Backup JSON API.

    Args:
        config: Client settings; resolved from the config file and
            environment when omitted.
        store: Shared result/counter store; a :class:`DiskStore` in the
            cache directory when omitted.
        transport: Transport; an :class:`HttpxTransport` when omitted.

    Components created here are closed by :meth:`close`; components passed
    in are left open for their owner.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        store: Optional[KeyValueStore] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        self.config = config if config is not None else resolve_config()
        self._owned: list[Any] = []

        if store is None:
            store = DiskStore(get_cache_dir())
            self._owned.append(store)
        if transport is None:
            transport = HttpxTransport(self.config.request)
            self._owned.append(transport)

        self.store = store
        self.counters = CallCounters(store, self.config.cache.key_prefix)
        self.dispatcher = CallDispatcher(transport, self.counters, self.config)
        self.cache = CacheAsideLayer(self.dispatcher, store, self.config.cache)

    def fetch(
        self,
        site: Site,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
        force_refresh: bool = False,
        ttl: Optional[int] = None,
    ) -> Any:
        """Return the result of *method* on *site*, served from cache when possible."""
        return self.cache.get_or_compute(site, method, params, force_refresh, ttl)

    def call(
        self,
        site: Site,
        method: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Perform a live call of *method* on *site*, bypassing the cache."""
        self.dispatcher.bind(site)
        return self.dispatcher.call(method, params)

    def close(self) -> None:
        """Close the transport and store created by this instance."""
        for component in self._owned:
            component.close()
        self._owned.clear()

    def __enter__(self) -> AkeebaRemote:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
