"""Tests for the call dispatcher."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from akeeba_remote.cache.counters import CallCounters
from akeeba_remote.cache.store import DiskStore
from akeeba_remote.client.dispatcher import CallDispatcher, tunnel_url
from akeeba_remote.exceptions import (
    ConfigurationError,
    ProtocolError,
    TransportError,
    UnknownOperationError,
)
from akeeba_remote.models import (
    AuthCredentials,
    CallRequest,
    ClientConfig,
    HTTPVerb,
    Platform,
    Site,
)


def _dispatcher(transport, **kwargs) -> CallDispatcher:
    d = CallDispatcher(transport, **kwargs)
    d.set_site("https://example.com/", "s3cret")
    return d


# ---------------------------------------------------------------------------
# Site binding
# ---------------------------------------------------------------------------


class TestSetSite:
    def test_joomla_entry_point(self, transport) -> None:
        d = CallDispatcher(transport)
        d.set_site("https://example.com/", "key", Platform.JOOMLA)
        assert d.url == "https://example.com/index.php"
        assert d.key == "key"
        assert d.platform is Platform.JOOMLA

    def test_default_platform_is_joomla(self, transport) -> None:
        d = CallDispatcher(transport)
        d.set_site("https://example.com/", "key")
        assert d.url == "https://example.com/index.php"

    def test_wordpress_entry_point(self, transport) -> None:
        d = CallDispatcher(transport)
        d.set_site("https://example.com/", "a key&more", "Wordpress")
        parts = urlsplit(d.url)
        assert parts.path == "/wp-content/plugins/akeebabackupwp/app/remote.php"
        assert parse_qs(parts.query) == {"key": ["a key&more"]}
        assert d.platform is Platform.WORDPRESS

    def test_trailing_slash_added(self, transport) -> None:
        d = CallDispatcher(transport)
        d.set_site("https://example.com/blog", "key")
        assert d.url == "https://example.com/blog/index.php"

    def test_unknown_platform_rejected(self, transport) -> None:
        d = CallDispatcher(transport)
        with pytest.raises(ValueError):
            d.set_site("https://example.com/", "key", "Drupal")

    def test_tunnel_rewrite(self, transport) -> None:
        config = ClientConfig(tunnel_suffix="-abc.proxy.net")
        d = CallDispatcher(transport, config=config)
        d.set_site("https://my-site.example.com/", "key")
        assert d.url == "https://my--site-example-com-abc.proxy.net/index.php"

    def test_tunnel_url_keeps_path(self) -> None:
        assert tunnel_url("http://a.b/c/", "-x.io") == "http://a-b-x.io/c/"

    def test_tunnel_url_keeps_port_outside_host(self) -> None:
        assert tunnel_url("https://e.com:8443/", "-x.proxy.net") == "https://e-com-x.proxy.net:8443/"

    def test_tunnel_suffix_trailing_slash_ignored(self) -> None:
        assert tunnel_url("https://e.com/", "-x.proxy.net/") == "https://e-com-x.proxy.net/"

    def test_tunnel_url_keeps_userinfo(self) -> None:
        assert tunnel_url("https://u:p@e.com/", "-x.io") == "https://u:p@e-com-x.io/"

    def test_bind_site_model(self, transport) -> None:
        creds = AuthCredentials(username="u", password="p")
        site = Site(id=1, url="https://wp.example.com/", secret_key="k",
                    platform=Platform.WORDPRESS, auth=creds)
        d = CallDispatcher(transport)
        d.bind(site)
        assert "remote.php?key=k" in d.url
        d.get_version()
        assert transport.last_call["auth"] == creds


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_returns_decoded_data(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply({"version": "1.0"}))
        assert _dispatcher(transport).get_version() == {"version": "1.0"}

    def test_base_parameters(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply({}))
        _dispatcher(transport).get_version()
        params = transport.last_call["params"]
        assert params["option"] == "com_akeeba"
        assert params["view"] == "json"
        assert params["format"] == "component"
        assert "json" in params

    def test_envelope_contents(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply([]))
        _dispatcher(transport).list_backups({"limit": "10", "junk": 1})
        envelope = transport.last_envelope()
        assert envelope["encapsulation"] == 1
        body = envelope["body"]
        assert body["method"] == "listBackups"
        assert body["key"] == "s3cret"
        assert body["data"] == {"from": "0", "limit": "10", "method": "listBackups", "tag": "json"}

    def test_get_is_default_verb(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply({}))
        _dispatcher(transport).list_backups()
        assert transport.last_call["verb"] is HTTPVerb.GET
        assert transport.last_call["url"] == "https://example.com/index.php"

    def test_start_backup_posts(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply({}))
        _dispatcher(transport).start_backup()
        assert transport.last_call["verb"] is HTTPVerb.POST

    def test_verb_override(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply({}))
        _dispatcher(transport).start_backup({"method": "get"})
        assert transport.last_call["verb"] is HTTPVerb.GET
        assert transport.last_envelope()["body"]["data"]["method"] == "startBackup"

    def test_no_leak_between_calls(self, make_transport, make_reply) -> None:
        transport = make_transport(default=make_reply({}))
        d = _dispatcher(transport)
        d.start_backup({"profile": "3", "description": "nightly"})
        d.get_version()
        assert transport.last_envelope()["body"]["data"] == {"method": "getVersion", "tag": "json"}
        assert transport.last_call["verb"] is HTTPVerb.GET

    def test_empty_reply_returns_none(self, make_transport) -> None:
        transport = make_transport("")
        assert _dispatcher(transport).get_version() is None

    def test_non_200_status_passes_through_with_warning(
        self, capfd, make_transport, make_reply
    ) -> None:
        transport = make_transport(make_reply("Invalid login", status=401))
        assert _dispatcher(transport).get_version() == "Invalid login"
        assert "status 401" in capfd.readouterr().err

    def test_protocol_error_propagates(self, make_transport) -> None:
        transport = make_transport("<html>oops</html>")
        with pytest.raises(ProtocolError):
            _dispatcher(transport).get_version()

    def test_transport_error_propagates_unchanged(self, make_transport) -> None:
        error = TransportError("boom", status_code=502)
        transport = make_transport(error)
        with pytest.raises(TransportError) as exc_info:
            _dispatcher(transport).get_version()
        assert exc_info.value is error

    def test_dispatch_accepts_request_directly(self, make_transport, make_reply) -> None:
        transport = make_transport(make_reply({"ok": True}))
        d = _dispatcher(transport)
        result = d.dispatch(CallRequest(method="getVersion", verb=HTTPVerb.POST))
        assert result == {"ok": True}
        assert transport.last_call["verb"] is HTTPVerb.POST


class TestConfigurationErrors:
    def test_no_site(self, transport) -> None:
        d = CallDispatcher(transport)
        with pytest.raises(ConfigurationError):
            d.get_version()
        assert transport.calls == []

    def test_empty_key(self, transport) -> None:
        d = CallDispatcher(transport)
        d.set_site("https://example.com/", "")
        with pytest.raises(ConfigurationError):
            d.get_version()
        assert transport.calls == []

    def test_empty_method(self, transport) -> None:
        d = _dispatcher(transport)
        with pytest.raises(ConfigurationError):
            d.dispatch(CallRequest(method=""))
        assert transport.calls == []

    def test_unknown_operation(self, transport) -> None:
        with pytest.raises(UnknownOperationError):
            _dispatcher(transport).call("dropDatabase")
        assert transport.calls == []

    def test_missing_required_param(self, transport) -> None:
        with pytest.raises(ConfigurationError):
            _dispatcher(transport).get_backup_info({})
        assert transport.calls == []


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class TestAuth:
    def test_no_auth_by_default(self, transport) -> None:
        _dispatcher(transport).get_version()
        assert transport.last_call["auth"] is None

    def test_session_auth_forwarded(self, transport) -> None:
        d = _dispatcher(transport)
        creds = AuthCredentials(username="admin", password="pw")
        d.set_auth(creds)
        d.get_version()
        d.list_backups()
        assert [c["auth"] for c in transport.calls] == [creds, creds]

    def test_per_call_override(self, transport) -> None:
        d = _dispatcher(transport)
        d.set_auth(AuthCredentials(username="admin", password="pw"))
        other = AuthCredentials(username="other", password="x")
        d.call("getVersion", auth=other)
        assert transport.last_call["auth"] == other
        d.get_version()
        assert transport.last_call["auth"].username == "admin"


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


class TestCounters:
    def test_method_counter(self, transport, store: DiskStore) -> None:
        counters = CallCounters(store)
        d = _dispatcher(transport, counters=counters)
        d.get_version()
        d.get_version()
        d.list_backups()
        assert counters.count("getVersion") == 2
        assert counters.count("listBackups") == 1
        assert counters.running_backups() == 0

    def test_start_backup_counts_both(self, transport, store: DiskStore) -> None:
        counters = CallCounters(store)
        _dispatcher(transport, counters=counters).start_backup()
        assert counters.count("startBackup") == 1
        assert counters.running_backups() == 1

    def test_start_backup_counts_on_failure(self, store: DiskStore, make_transport) -> None:
        counters = CallCounters(store)
        transport = make_transport(TransportError("down"), "not json")
        d = _dispatcher(transport, counters=counters)
        with pytest.raises(TransportError):
            d.start_backup()
        with pytest.raises(ProtocolError):
            d.start_backup()
        assert counters.count("startBackup") == 2
        assert counters.running_backups() == 2

    def test_start_backup_without_site_counts_both(self, transport, store: DiskStore) -> None:
        counters = CallCounters(store)
        d = CallDispatcher(transport, counters=counters)
        with pytest.raises(ConfigurationError):
            d.start_backup()
        assert counters.count("startBackup") == 1
        assert counters.running_backups() == 1
        assert transport.calls == []

    def test_start_backup_bad_verb_counts_both(self, transport, store: DiskStore) -> None:
        counters = CallCounters(store)
        d = _dispatcher(transport, counters=counters)
        with pytest.raises(ConfigurationError):
            d.start_backup({"method": "put"})
        assert counters.count("startBackup") == 1
        assert counters.running_backups() == 1
        assert transport.calls == []

    def test_dispatch_counts_method_only(self, transport, store: DiskStore) -> None:
        counters = CallCounters(store)
        d = _dispatcher(transport, counters=counters)
        d.dispatch(CallRequest(method="startBackup", verb=HTTPVerb.POST))
        assert counters.count("startBackup") == 1
        assert counters.running_backups() == 0

    def test_config_error_not_counted_as_call(self, transport, store: DiskStore) -> None:
        counters = CallCounters(store)
        d = CallDispatcher(transport, counters=counters)
        with pytest.raises(ConfigurationError):
            d.get_version()
        assert counters.count("getVersion") == 0


# ---------------------------------------------------------------------------
# Operation wrappers
# ---------------------------------------------------------------------------


class TestOperationWrappers:
    @pytest.mark.parametrize(
        ("attr", "params", "wire"),
        [
            ("get_version", None, "getVersion"),
            ("get_profiles", None, "getProfiles"),
            ("list_backups", {}, "listBackups"),
            ("get_backup_info", {"backup_id": 1}, "getBackupInfo"),
            ("get_log", {}, "getLog"),
            ("delete_backup", {"backup_id": 1}, "delete"),
            ("delete_files", {"backup_id": 1}, "deleteFiles"),
            ("start_backup", {}, "startBackup"),
            ("step_backup", {}, "stepBackup"),
            ("delete_profile", {"profile": 2}, "deleteProfile"),
            ("save_profile", {}, "saveProfile"),
            ("get_gui_configuration", {}, "getGUIConfiguration"),
            ("save_configuration", {"engineconfig": {"a": 1}}, "saveConfiguration"),
            ("export_configuration", {}, "exportConfiguration"),
            ("import_configuration", {"data": "{}"}, "importConfiguration"),
        ],
    )
    def test_wrapper_sends_wire_method(self, transport, attr, params, wire) -> None:
        d = _dispatcher(transport)
        method = getattr(d, attr)
        if params is None:
            method()
        else:
            method(params)
        assert transport.last_envelope()["body"]["method"] == wire

    def test_start_backup_comment_uses_client_name(self, transport) -> None:
        d = _dispatcher(transport, config=ClientConfig(client_name="Fleet Manager"))
        d.start_backup()
        data = transport.last_envelope()["body"]["data"]
        assert data["comment"] == "Created with Fleet Manager"
        assert data["profile"] == "1"
