"""Exception hierarchy for akeeba-remote.

All exceptions inherit from :class:`AkeebaError` so that callers can catch
every failure raised by this package with a single ``except`` clause.

Subclass hierarchy::

    AkeebaError
    +-- ConfigurationError
    |   +-- UnknownOperationError
    +-- ProtocolError
    +-- TransportError

Configuration errors are always raised before any network I/O.  Protocol
errors carry the raw reply text for diagnosis.  Transport errors are raised
by the transport collaborator and propagated unchanged by the dispatcher.
"""

from __future__ import annotations

from typing import Optional


class AkeebaError(Exception):
    """Base exception for all akeeba-remote errors.

    Args:
        message: Human-readable error description.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(AkeebaError):
    """Raised when a call cannot be assembled.

    Covers a missing site URL, secret key or method name, an invalid HTTP
    verb, a missing required operation parameter, an unsupported
    encapsulation mode, and unreadable configuration files.
    """


class UnknownOperationError(ConfigurationError):
    """Raised when an operation name is not in the operation table."""

    def __init__(self, name: str):
        super().__init__(f"Unknown operation '{name}'")
        self.name = name


class ProtocolError(AkeebaError):
    """Raised when a reply body violates the JSON API envelope format.

    Args:
        message: Description of the violation.
        raw: The reply body exactly as received from the transport.
    """

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class TransportError(AkeebaError):
    """Raised on network-level failures or HTTP error statuses.

    Args:
        message: Description of the failure.
        status_code: HTTP status code when the server answered, ``None``
            for connection and timeout failures.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
