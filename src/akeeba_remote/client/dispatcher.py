"""Call dispatcher for the Akeeba Backup JSON API.

:class:`CallDispatcher` turns an operation name and a parameter bag into one
transport round-trip:

1. The operation is looked up in :data:`~akeeba_remote.client.operations.OPERATIONS`.
2. Its recognised parameters, verb and the auth credentials are frozen into a
   :class:`~akeeba_remote.models.CallRequest`.
3. :meth:`CallDispatcher.dispatch` encodes the envelope, counts the call,
   sends it through the transport and decodes the reply.

The only state kept on the dispatcher is the site binding (URL, key,
platform) and the default credentials.  Everything specific to one call
lives in its ``CallRequest``, so calls never leak parameters into each other.
Callers that drive several sites concurrently should still use one
dispatcher per site, since :meth:`CallDispatcher.set_site` rebinds the
instance.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

from akeeba_remote.cache.counters import CallCounters
from akeeba_remote.client import operations as ops
from akeeba_remote.client.transport import Transport
from akeeba_remote.exceptions import ConfigurationError
from akeeba_remote.models import (
    AuthCredentials,
    CallRequest,
    ClientConfig,
    Platform,
    Site,
)
from akeeba_remote.output import get_output
from akeeba_remote.protocol.envelope import build_request, describe_status, parse_reply

BASE_PARAMS: dict[str, str] = {
    "option": "com_akeeba",
    "view": "json",
    "format": "component",
}

JOOMLA_ENTRY_POINT = "index.php"
WORDPRESS_ENTRY_POINT = "wp-content/plugins/akeebabackupwp/app/remote.php"


def tunnel_url(url: str, suffix: str) -> str:
    """Rewrite the host of *url* into a tunneled hostname ending with *suffix*.

    Hyphens in the host are doubled and dots become hyphens, so
    ``https://my-site.example.com/`` with the suffix ``-abc.proxy.net``
    becomes ``https://my--site-example-com-abc.proxy.net/``.  A trailing
    ``/`` on the suffix is ignored; any port and credentials are kept.
    """
    parts = urlsplit(url)
    host = (parts.hostname or "").replace("-", "--").replace(".", "-")
    netloc = host + suffix.rstrip("/")
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    userinfo, at, _ = parts.netloc.rpartition("@")
    if at:
        netloc = f"{userinfo}@{netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


class CallDispatcher:
    """Assemble and send JSON API calls for one site at a time.

    Args:
        transport: Delivers parameter bags and returns reply bodies.
        counters: Optional call counters; when ``None`` nothing is counted.
        config: Client settings (client name, tunnel suffix).

    Example::

        dispatcher = CallDispatcher(HttpxTransport())
        dispatcher.set_site("https://example.com/", "secret")
        dispatcher.get_version()
    """

    def __init__(
        self,
        transport: Transport,
        counters: Optional[CallCounters] = None,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self._transport = transport
        self._counters = counters
        self._config = config or ClientConfig()
        self._url: Optional[str] = None
        self._key: Optional[str] = None
        self._platform: Platform = Platform.JOOMLA
        self._auth: Optional[AuthCredentials] = None

    # ------------------------------------------------------------------ #
    # Session
    # ------------------------------------------------------------------ #

    @property
    def url(self) -> Optional[str]:
        """Entry-point URL of the bound site."""
        return self._url

    @property
    def key(self) -> Optional[str]:
        """Secret key of the bound site."""
        return self._key

    @property
    def platform(self) -> Platform:
        return self._platform

    def set_site(
        self,
        url: str,
        secret_key: str,
        platform: Platform | str = Platform.JOOMLA,
    ) -> None:
        """Bind the dispatcher to a site.

        Args:
            url: Base URL of the site.
            secret_key: The site's front-end secret key.
            platform: ``Wordpress`` routes calls through the plugin's remote
                entry point with the key in the query string; anything else
                uses ``index.php``.
        """
        platform = Platform(platform)
        if self._config.tunnel_suffix:
            url = tunnel_url(url, self._config.tunnel_suffix)
        if not url.endswith("/"):
            url += "/"

        if platform is Platform.WORDPRESS:
            url = f"{url}{WORDPRESS_ENTRY_POINT}?{urlencode({'key': secret_key})}"
        else:
            url = f"{url}{JOOMLA_ENTRY_POINT}"

        self._url = url
        self._key = secret_key
        self._platform = platform

    def bind(self, site: Site) -> None:
        """Bind the dispatcher to *site*, including its credentials."""
        self.set_site(site.url, site.secret_key, site.platform)
        self.set_auth(site.auth)

    def set_auth(self, credentials: Optional[AuthCredentials]) -> None:
        """Set the transport credentials sent with every subsequent call."""
        self._auth = credentials

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def call(
        self,
        name: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        auth: Optional[AuthCredentials] = None,
    ) -> Any:
        """Invoke the operation *name* with *params*.

        An operation that starts a backup bumps both its method counter and
        the running-backups counter as soon as it is invoked, so a start that
        fails for any reason, configuration errors included, is still counted
        once on each.  Other operations are counted by :meth:`dispatch`.

        Args:
            name: Wire name of the operation, e.g. ``"listBackups"``.
            params: Parameter bag; see :mod:`~akeeba_remote.client.operations`
                for the keys each operation recognises.
            auth: Credentials for this call only, overriding the session's.

        Returns:
            The decoded reply payload (``None`` for an empty reply).

        Raises:
            UnknownOperationError: If *name* is not a known operation.
            ConfigurationError: If the call cannot be assembled.
            ProtocolError: If the reply is malformed.
            TransportError: Propagated from the transport.
        """
        operation = ops.get_operation(name)
        if not operation.starts_backup:
            return self.dispatch(self._build_request(operation, params, auth))

        if self._counters is not None:
            self._counters.record_call(operation.name)
            self._counters.record_backup_started()
        request = self._build_request(operation, params, auth)
        self._check_ready(request)
        return self._send(request)

    def dispatch(self, request: CallRequest) -> Any:
        """Send *request* to the bound site and return the decoded payload.

        The method counter is bumped once the request passes the site checks,
        before anything is sent.
        """
        self._check_ready(request)
        if self._counters is not None:
            self._counters.record_call(request.method)
        return self._send(request)

    def _build_request(
        self,
        operation: ops.Operation,
        params: Optional[Mapping[str, Any]],
        auth: Optional[AuthCredentials],
    ) -> CallRequest:
        return CallRequest(
            method=operation.name,
            verb=operation.resolve_verb(params),
            params=operation.build_params(params, self._config.client_name),
            auth=auth if auth is not None else self._auth,
        )

    def _check_ready(self, request: CallRequest) -> None:
        if not self._url or not self._key or not request.method:
            raise ConfigurationError("Needs a site url, a secret key and a method")

    def _send(self, request: CallRequest) -> Any:
        data = dict(request.params)
        data["method"] = request.method
        envelope = build_request(request.method, self._key, data)

        bag: dict[str, Any] = {**BASE_PARAMS, "json": envelope}
        output = get_output()
        output.debug(f"{request.verb.value} {request.method} -> {self._url}")

        raw = self._transport.send(request.verb, self._url, bag, request.auth)
        reply = parse_reply(raw)

        if not reply.has_content:
            output.debug(f"{request.method}: empty reply")
        elif not reply.ok:
            output.warning(
                f"{request.method} replied with status {reply.status}: "
                f"{describe_status(reply.status)}"
            )
        return reply.data

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def get_version(self) -> Any:
        """Return the remote Akeeba Backup and API version information."""
        return self.call(ops.GET_VERSION)

    def get_profiles(self) -> Any:
        """List the backup profiles."""
        return self.call(ops.GET_PROFILES)

    def list_backups(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """List backup records (``from`` defaults to ``"0"``, ``limit`` to ``"50"``)."""
        return self.call(ops.LIST_BACKUPS, params)

    def get_backup_info(self, params: Mapping[str, Any]) -> Any:
        """Return one backup record; ``backup_id`` is required."""
        return self.call(ops.GET_BACKUP_INFO, params)

    def get_log(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.call(ops.GET_LOG, params)

    def delete_backup(self, params: Mapping[str, Any]) -> Any:
        """Delete a backup record and its files; ``backup_id`` is required."""
        return self.call(ops.DELETE, params)

    def delete_files(self, params: Mapping[str, Any]) -> Any:
        """Delete the archive files of a backup record, keeping the record."""
        return self.call(ops.DELETE_FILES, params)

    def start_backup(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Start a backup.

        Sent as POST unless ``params["method"]`` says otherwise.  Counts a
        running backup whether or not the call succeeds.
        """
        return self.call(ops.START_BACKUP, params)

    def step_backup(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Run the next step of a backup in progress."""
        return self.call(ops.STEP_BACKUP, params)

    def delete_profile(self, params: Mapping[str, Any]) -> Any:
        return self.call(ops.DELETE_PROFILE, params)

    def save_profile(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Create (``profile=0``) or update a backup profile."""
        return self.call(ops.SAVE_PROFILE, params)

    def get_gui_configuration(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.call(ops.GET_GUI_CONFIGURATION, params)

    def save_configuration(self, params: Mapping[str, Any]) -> Any:
        return self.call(ops.SAVE_CONFIGURATION, params)

    def export_configuration(self, params: Optional[Mapping[str, Any]] = None) -> Any:
        return self.call(ops.EXPORT_CONFIGURATION, params)

    def import_configuration(self, params: Mapping[str, Any]) -> Any:
        return self.call(ops.IMPORT_CONFIGURATION, params)
