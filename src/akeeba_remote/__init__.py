"""akeeba-remote -- Client for the Akeeba Backup JSON remote API.

This package talks to the JSON API of Akeeba Backup installations on Joomla
and WordPress sites. It builds authenticated request envelopes, dispatches
them over HTTP, decodes the reply envelope, and memoises results in a shared
cache keyed by site and method.

Typical use::

    from akeeba_remote import AkeebaRemote, Site

    site = Site(id=1, url="https://example.com/", secret_key="s3cret")
    with AkeebaRemote() as remote:
        remote.fetch(site, "getVersion")

Modules:
    facade: :class:`AkeebaRemote`, the wired-up entry point.
    protocol: Challenge and envelope codec.
    client: Operation table, dispatcher and HTTP transport.
    cache: Shared store, call counters and the cache-aside layer.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration with environment overrides.
    exceptions: Exception hierarchy.
    output: stderr diagnostics with Rich support.
"""

from akeeba_remote.exceptions import (
    AkeebaError,
    ConfigurationError,
    ProtocolError,
    TransportError,
    UnknownOperationError,
)
from akeeba_remote.facade import AkeebaRemote
from akeeba_remote.models import AuthCredentials, ClientConfig, Platform, Site

__version__ = "0.1.0"

__all__ = [
    "AkeebaError",
    "AkeebaRemote",
    "AuthCredentials",
    "ClientConfig",
    "ConfigurationError",
    "Platform",
    "ProtocolError",
    "Site",
    "TransportError",
    "UnknownOperationError",
]
