"""JSON API client module for akeeba-remote.

Classes:
    :class:`CallDispatcher` -- assembles calls and sends them through a transport.
    :class:`HttpxTransport` -- blocking transport backed by :class:`httpx.Client`.
    :class:`Transport` -- protocol any transport must satisfy.

Example::

    from akeeba_remote.client import CallDispatcher, HttpxTransport

    with HttpxTransport() as transport:
        dispatcher = CallDispatcher(transport)
        dispatcher.set_site("https://example.com/", "s3cret")
        print(dispatcher.list_backups({"limit": "10"}))
"""

from akeeba_remote.client.dispatcher import CallDispatcher
from akeeba_remote.client.operations import OPERATIONS, Operation, get_operation
from akeeba_remote.client.transport import HttpxTransport, Transport

__all__ = [
    "CallDispatcher",
    "HttpxTransport",
    "OPERATIONS",
    "Operation",
    "Transport",
    "get_operation",
]
