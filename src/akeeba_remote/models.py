"""Canonical Pydantic models shared across all akeeba-remote modules.

This is the single source of truth for data shapes in the project. The models
fall into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig` and :class:`ClientConfig`.

**Site models** -- describe the remote installation being driven:
    :class:`Platform`, :class:`Site` and :class:`AuthCredentials`.

**Wire models** -- produced and consumed by the protocol codec and the
dispatcher:
    :class:`HTTPVerb`, :class:`Encapsulation`, :class:`CallRequest` and
    :class:`Reply`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied to every transport call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class CacheConfig(BaseModel):
    """Result cache and counter settings."""

    ttl_seconds: int = Field(default=86400, description="Cache TTL in seconds")
    key_prefix: str = Field(
        default="akeeba", description="Prefix for cache and counter keys"
    )


class ClientConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/akeeba-remote/config.json``.

    Loaded and saved by :func:`~akeeba_remote.config.load_config` and
    :func:`~akeeba_remote.config.save_config`. Environment variables override
    values from the file; see :func:`~akeeba_remote.config.resolve_config`.
    """

    client_name: str = Field(
        default="akeeba-remote",
        description="Name used in the default backup comment",
    )
    tunnel_suffix: Optional[str] = Field(
        default=None,
        description="When set, site hosts are rewritten into a tunneled hostname "
        "ending with this suffix (request inspection proxies)",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Sites ---


class Platform(str, enum.Enum):
    """CMS the remote Akeeba Backup installation runs on.

    The platform decides which entry point the JSON API is reached through.
    """

    JOOMLA = "Joomla"
    WORDPRESS = "Wordpress"


class AuthCredentials(BaseModel):
    """Transport-level credentials (HTTP basic auth) forwarded on every call."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str


class Site(BaseModel):
    """A remote site record as handed over by the caller.

    Only the fields needed to reach the JSON API are modelled; persistence of
    site records is left to the caller.
    """

    id: Union[int, str]
    url: str = Field(description="Base URL of the site, e.g. https://example.com/")
    secret_key: str = Field(description="Akeeba Backup front-end secret key")
    platform: Platform = Platform.JOOMLA
    auth: Optional[AuthCredentials] = None


# --- Wire ---


class HTTPVerb(str, enum.Enum):
    """HTTP verbs the JSON API accepts."""

    GET = "GET"
    POST = "POST"


class Encapsulation(enum.IntEnum):
    """Body encapsulation modes defined by the JSON API.

    Only :attr:`RAW` (plain JSON body authenticated with a challenge) is
    implemented by this client.
    """

    RAW = 1
    AESCTR128 = 2
    AESCTR256 = 3
    AESCBC128 = 4
    AESCBC256 = 5


class CallRequest(BaseModel):
    """Immutable description of a single API call.

    Built by :meth:`~akeeba_remote.client.dispatcher.CallDispatcher.call`
    from an operation descriptor and the caller's parameter bag, then handed
    to :meth:`~akeeba_remote.client.dispatcher.CallDispatcher.dispatch`.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    verb: HTTPVerb = HTTPVerb.GET
    params: dict[str, Any] = Field(default_factory=dict)
    auth: Optional[AuthCredentials] = None


class Reply(BaseModel):
    """Decoded reply envelope.

    ``has_content`` is ``False`` for an empty reply body, in which case
    ``status`` and ``data`` are both ``None``.  Otherwise ``status`` is
    whatever the remote end sent, usually an ``int``.
    """

    model_config = ConfigDict(frozen=True)

    status: Any = None
    data: Any = None
    raw: str = ""
    has_content: bool = True

    @property
    def ok(self) -> bool:
        """Whether the reply carries the normal (200) status."""
        return self.status == 200

    @classmethod
    def no_content(cls, raw: str = "") -> Reply:
        """Build the result returned for an empty reply body."""
        return cls(raw=raw, has_content=False)
