"""Request and reply envelopes of the Akeeba Backup JSON API.

A request travels as two nested JSON documents::

    {"encapsulation": 1, "body": "<json>"}

where the inner ``body`` string decodes to
``{"challenge": ..., "key": ..., "method": ..., "data": {...}}``.

Replies are wrapped in ``###`` markers and carry the result as a JSON string
inside the JSON envelope, so the payload is decoded twice::

    ###{"body": {"status": 200, "data": "{\\"version\\": \\"1.0\\"}"}}###

See Also:
    :mod:`akeeba_remote.protocol.challenge` for the ``challenge`` field.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from akeeba_remote.exceptions import ConfigurationError, ProtocolError
from akeeba_remote.models import Encapsulation, Reply
from akeeba_remote.protocol.challenge import get_challenge

REPLY_MARKER = "###"

COMPACT = (",", ":")

STATUS_DESCRIPTIONS: dict[int, str] = {
    200: "Normal reply. Your request was successful.",
    401: "Invalid credentials. The challenge you provided failed, or you used "
    "an invalid key to encrypt your request.",
    403: "Inadequate privileges. The system administrator doesn't allow the "
    "requested action to be performed over the JSON API.",
    404: "Requested resource not found. This can imply that the backup record "
    "ID or the file you requested to download is not present in the system.",
    405: "Unknown JSON method. The JSON method requested is unknown.",
    500: "An error occurred. More information will be provided in the data "
    "part of the response.",
    501: "Not implemented. The method you requested is not implemented by the "
    "server.",
    503: "Remote service not activated. The system administrator has not "
    "activated the front-end or remote backup feature of Akeeba Backup.",
}


def describe_status(status: Any) -> str:
    """Return the documented meaning of a reply status code."""
    if status is None:
        return "No status"
    if isinstance(status, int) and status in STATUS_DESCRIPTIONS:
        return STATUS_DESCRIPTIONS[status]
    return f"Undocumented status {status!r}"


def build_request(
    method: str,
    secret_key: str,
    params: Mapping[str, Any],
    *,
    encapsulation: Encapsulation = Encapsulation.RAW,
    salt: Optional[str] = None,
) -> str:
    """Serialise a call into the outer request envelope.

    Args:
        method: Wire name of the API method, e.g. ``"getVersion"``.
        secret_key: The site's front-end secret key.
        params: Method parameters.  A copy is sent as ``data`` with
            ``tag`` forced to ``"json"``; *params* itself is left untouched.
        encapsulation: Body encapsulation mode.  Only ``RAW`` is supported.
        salt: Fixed challenge salt, for reproducible envelopes.

    Returns:
        The JSON-encoded envelope, ready to be sent as the ``json`` field.

    Raises:
        ConfigurationError: If *encapsulation* is not ``RAW``.
    """
    if encapsulation is not Encapsulation.RAW:
        raise ConfigurationError(
            f"Encapsulation {encapsulation.name} is not supported; only RAW is implemented"
        )

    data = dict(params)
    data["tag"] = "json"

    body = {
        "challenge": get_challenge(secret_key, salt),
        "key": secret_key,
        "method": method,
        "data": data,
    }
    return json.dumps(
        {"encapsulation": int(encapsulation), "body": json.dumps(body, separators=COMPACT)},
        separators=COMPACT,
    )


def parse_reply(raw: str) -> Reply:
    """Decode and validate a reply body.

    ``body.status`` must be present but is passed through unchecked; see
    :attr:`Reply.ok <akeeba_remote.models.Reply.ok>`.

    An empty body is a valid "no content" outcome and yields a
    :class:`~akeeba_remote.models.Reply` with ``has_content=False``.

    Args:
        raw: The reply body exactly as received.

    Returns:
        The decoded reply; ``data`` holds the doubly-decoded payload.

    Raises:
        ProtocolError: If the body is not JSON, ``body`` or ``body.status``
            is missing, or ``body.data`` is missing or malformed.
    """
    text = (raw or "").strip()
    if not text:
        return Reply.no_content(raw or "")

    if text.startswith(REPLY_MARKER):
        text = text[len(REPLY_MARKER):]
    if text.endswith(REPLY_MARKER):
        text = text[: -len(REPLY_MARKER)]

    try:
        envelope = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Reply is not valid JSON: {exc}", raw=raw) from exc

    body = envelope.get("body") if isinstance(envelope, dict) else None
    if not isinstance(body, dict):
        raise ProtocolError("Reply is missing the 'body' object", raw=raw)
    if "status" not in body:
        raise ProtocolError("Reply body is missing 'status'", raw=raw)
    if "data" not in body:
        raise ProtocolError("Reply body is missing 'data'", raw=raw)

    payload = body["data"]
    if not isinstance(payload, str):
        raise ProtocolError("Reply 'data' is not a JSON-encoded string", raw=raw)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ProtocolError(f"Reply 'data' is not valid JSON: {exc}", raw=raw) from exc

    return Reply(status=body["status"], data=data, raw=raw)
