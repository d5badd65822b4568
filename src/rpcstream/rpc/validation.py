"""Envelope predicates used to classify decoded JSON-RPC input."""

from __future__ import annotations

from typing import Any

from rpcstream.rpc.registry import HandlerRegistry
from rpcstream.rpc.types import JSONRPC_VERSION


def is_request_shaped(value: Any) -> bool:
    return isinstance(value, dict)


def has_valid_id(value: Any) -> bool:
    """True when the envelope carries a string or numeric id (bool excluded)."""
    if not is_request_shaped(value):
        return False
    request_id = value.get("id")
    return isinstance(request_id, (str, int, float)) and not isinstance(request_id, bool)


def expects_reply(value: Any) -> bool:
    """Malformed values always get an error reply; envelopes only when they carry an id."""
    return not is_request_shaped(value) or has_valid_id(value)


def has_valid_method(value: Any) -> bool:
    return isinstance(value.get("method"), str)


def has_valid_version(value: Any, ignore_version: bool = False) -> bool:
    return ignore_version or value.get("jsonrpc") == JSONRPC_VERSION


def has_handler(value: Any, registry: HandlerRegistry) -> bool:
    method = value.get("method")
    return isinstance(method, str) and registry.has_handlers(method)


__all__ = [
    "expects_reply",
    "has_handler",
    "has_valid_id",
    "has_valid_method",
    "has_valid_version",
    "is_request_shaped",
]
