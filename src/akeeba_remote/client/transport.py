"""HTTP transport for the JSON API.

The dispatcher only depends on the :class:`Transport` protocol: anything
with a ``send(verb, url, params, auth) -> str`` method can carry calls.
:class:`HttpxTransport` is the bundled implementation.  It wraps
:class:`httpx.Client` and layers on:

- **Verb-aware encoding** -- the parameter bag becomes the query string for
  GET and form fields for POST.
- **Basic auth** -- optional :class:`~akeeba_remote.models.AuthCredentials`
  are sent as HTTP basic credentials.
- **Retry with backoff** -- retries with exponential delay (1 s, 2 s,
  4 s, ...).  GET is retried on 5xx, timeouts and network errors; POST
  only when the connection could not be established.
- **Error mapping** -- anything that is not a usable reply is raised as
  :class:`~akeeba_remote.exceptions.TransportError`.
"""

from __future__ import annotations

import time
from typing import Any, Optional, Protocol

import httpx

from akeeba_remote.exceptions import TransportError
from akeeba_remote.models import AuthCredentials, HTTPVerb, RequestConfig
from akeeba_remote.output import get_output


class Transport(Protocol):
    """Anything able to deliver a parameter bag to a URL and return the body."""

    def send(
        self,
        verb: HTTPVerb,
        url: str,
        params: dict[str, Any],
        auth: Optional[AuthCredentials] = None,
    ) -> str:
        """Deliver *params* to *url* and return the raw reply body.

        Raises:
            TransportError: On any delivery failure.
        """
        ...


class HttpxTransport:
    """Blocking transport backed by :class:`httpx.Client`.

    Args:
        config: Timeout, SSL verification and retry settings.
        http_transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with HttpxTransport(RequestConfig(timeout=10)) as transport:
            body = transport.send(HTTPVerb.GET, "https://example.com/index.php", {"view": "json"})
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> None:
        """Create the underlying :class:`httpx.Client` if not already open."""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._config.timeout,
                verify=self._config.verify_ssl,
                follow_redirects=True,
                transport=self._http_transport,
            )

    def close(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> HttpxTransport:
        self.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Sending
    # ------------------------------------------------------------------ #

    def send(
        self,
        verb: HTTPVerb,
        url: str,
        params: dict[str, Any],
        auth: Optional[AuthCredentials] = None,
    ) -> str:
        """Send *params* to *url* and return the reply body as text.

        Args:
            verb: ``GET`` sends *params* as the query string, ``POST`` as
                form fields.
            url: Entry-point URL.  Query parameters already present in the
                URL are kept.
            params: The parameter bag.
            auth: Optional HTTP basic credentials.

        Returns:
            The reply body.

        Raises:
            TransportError: On HTTP status >= 400 or network / timeout errors
                after all retries.
        """
        self.open()
        response = self._execute_with_retry(verb, url, params, auth)
        self._map_response_error(response)
        return response.text

    def _execute_with_retry(
        self,
        verb: HTTPVerb,
        url: str,
        params: dict[str, Any],
        auth: Optional[AuthCredentials],
    ) -> httpx.Response:
        """Execute the request, retrying what is safe to repeat for *verb*."""
        assert self._client is not None

        max_retries = self._config.max_retries
        idempotent = verb is not HTTPVerb.POST
        output = get_output()

        kwargs: dict[str, Any] = {"method": verb.value, "url": url}
        if verb is HTTPVerb.POST:
            kwargs["data"] = params
        else:
            kwargs["params"] = params
        if auth is not None:
            kwargs["auth"] = (auth.username, auth.password)

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(**kwargs)
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                connect_failed = isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))
                if not idempotent and not connect_failed:
                    raise TransportError(f"{verb.value} request failed: {exc}") from exc
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise TransportError(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if idempotent and response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue

            return response

        raise TransportError("Request failed after all retries")  # pragma: no cover

    @staticmethod
    def _map_response_error(response: httpx.Response) -> None:
        """Raise :class:`TransportError` for HTTP error statuses."""
        status = response.status_code
        if status < 400:
            return
        snippet = response.text[:200] if response.text else ""
        message = f"HTTP {status}: {snippet}" if snippet else f"HTTP {status}"
        raise TransportError(message, status_code=status)
