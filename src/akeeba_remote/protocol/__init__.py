"""Wire codec for the Akeeba Backup JSON API.

This package builds authenticated request envelopes and decodes reply
envelopes.  It performs no I/O.

Modules:
    :mod:`~akeeba_remote.protocol.challenge` -- salt and challenge strings.
    :mod:`~akeeba_remote.protocol.envelope` -- request and reply envelopes.
"""

from akeeba_remote.protocol.challenge import get_challenge, get_salt
from akeeba_remote.protocol.envelope import (
    STATUS_DESCRIPTIONS,
    build_request,
    describe_status,
    parse_reply,
)

__all__ = [
    "STATUS_DESCRIPTIONS",
    "build_request",
    "describe_status",
    "get_challenge",
    "get_salt",
    "parse_reply",
]
