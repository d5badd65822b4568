"""Tests for log filter parsing."""

from rpcstream.logging_utils import parse_log_filter


def test_global_level_only():
    assert parse_log_filter("debug") == ("debug", {})


def test_module_levels_and_disabled_modules():
    level, filters = parse_log_filter("info,rpcstream.rpc=debug,rpcstream.stream=false")
    assert level == "info"
    assert filters == {"rpcstream.rpc": "DEBUG", "rpcstream.stream": False}


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("RPCSTREAM_LOG_FILTER", "WARNING")
    assert parse_log_filter() == ("warning", {})
