"""Tests for server settings loading."""

from rpcstream.config.settings import ServerSettings, load_settings
from rpcstream.stream import JSONRPCServerStream


def test_defaults(monkeypatch):
    monkeypatch.delenv("RPCSTREAM_IGNORE_VERSION", raising=False)
    settings = ServerSettings()
    assert settings.ignore_version is False
    assert settings.line_delimited is True
    assert settings.url == "ws://localhost:7893"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RPCSTREAM_IGNORE_VERSION", "true")
    monkeypatch.setenv("RPCSTREAM_PORT", "9000")
    settings = ServerSettings()
    assert settings.ignore_version is True
    assert settings.port == 9000


def test_explicit_options_win_and_none_is_skipped(monkeypatch):
    monkeypatch.setenv("RPCSTREAM_IGNORE_VERSION", "true")
    settings = load_settings(ignore_version=False, host=None)
    assert settings.ignore_version is False
    assert settings.host == "localhost"


def test_stream_option_overrides_settings():
    stream = JSONRPCServerStream(ServerSettings(ignore_version=False), ignore_version=True)
    assert stream.settings.ignore_version is True
    assert stream.dispatcher.ignore_version is True
