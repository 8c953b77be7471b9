"""Shared test fixtures for akeeba-remote.

Provides reusable fixtures for isolated config environments, a colourless
global output manager, an on-disk store, reply bodies and a recording fake
transport.  These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from akeeba_remote.cache.store import DiskStore
from akeeba_remote.models import AuthCredentials, HTTPVerb, Site
from akeeba_remote.output import OutputManager, reset_output, set_output


def _make_reply(data: Any, status: int = 200, markers: bool = True) -> str:
    """Build a reply body the way the remote API sends it."""
    body = json.dumps({"body": {"status": status, "data": json.dumps(data)}})
    return f"###{body}###" if markers else body


class FakeTransport:
    """Transport double that records every call and replays queued bodies.

    Each queued item is either a reply body (``str``) or an exception
    instance, which is raised instead.  When the queue is empty the
    ``default`` body is returned.
    """

    def __init__(self, *replies: Any, default: str = "") -> None:
        self.replies = list(replies)
        self.default = default
        self.calls: list[dict[str, Any]] = []

    def send(
        self,
        verb: HTTPVerb,
        url: str,
        params: dict[str, Any],
        auth: Optional[AuthCredentials] = None,
    ) -> str:
        self.calls.append({"verb": verb, "url": url, "params": params, "auth": auth})
        reply = self.replies.pop(0) if self.replies else self.default
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def last_call(self) -> dict[str, Any]:
        return self.calls[-1]

    def last_envelope(self) -> dict[str, Any]:
        """Decode both layers of the last request envelope."""
        outer = json.loads(self.last_call["params"]["json"])
        outer["body"] = json.loads(outer["body"])
        return outer


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _plain_output() -> None:
    """Install a colourless OutputManager for every test.

    The manager caches a reference to sys.stderr at creation time, so it is
    rebuilt per test and reset afterwards.
    """
    set_output(OutputManager(no_color=True))
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_CACHE_HOME to subdirectories of tmp_path
    and clears all AKEEBA_REMOTE_* environment variables so that tests never
    touch real user config.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("akeeba_remote.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    for var in [
        "AKEEBA_REMOTE_CLIENT_NAME",
        "AKEEBA_REMOTE_CACHE_TTL",
        "AKEEBA_REMOTE_TUNNEL_SUFFIX",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# Store, transport and site fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_reply() -> Callable[..., str]:
    """Factory building reply bodies: ``make_reply(data, status=200, markers=True)``."""
    return _make_reply


@pytest.fixture
def make_transport() -> Callable[..., FakeTransport]:
    """Factory for :class:`FakeTransport`: ``make_transport(*replies, default="")``."""
    return FakeTransport


@pytest.fixture
def store(tmp_path: Path) -> DiskStore:
    """A DiskStore rooted in tmp_path, closed after the test."""
    s = DiskStore(tmp_path)
    yield s
    s.close()


@pytest.fixture
def transport() -> FakeTransport:
    """A FakeTransport answering every call with an empty object."""
    return FakeTransport(default=_make_reply({}))


@pytest.fixture
def site() -> Site:
    return Site(id=42, url="https://example.com/", secret_key="s3cret")
