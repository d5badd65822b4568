"""JSON-RPC error objects and the response formatter."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rpcstream.rpc.types import (
    ERROR_MESSAGES,
    INTERNAL_ERROR,
    INVALID_REQUEST,
    JSONRPC_VERSION,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
    JSONRPCError,
    JSONRPCReply,
    JSONRPCResponse,
    RequestId,
)


class JSONRPCErrorException(Exception):
    """Exception with JSON-RPC error code."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_error_data(self) -> ErrorData:
        if self.data is None:
            return ErrorData(code=self.code, message=self.message)
        return ErrorData(code=self.code, message=self.message, data=self.data)


def _reserved(code: int, message: str | None = None, data: Any = None) -> ErrorData:
    if data is None:
        return ErrorData(code=code, message=message or ERROR_MESSAGES[code])
    return ErrorData(code=code, message=message or ERROR_MESSAGES[code], data=data)


def parse_error() -> ErrorData:
    return _reserved(PARSE_ERROR)


def invalid_request() -> ErrorData:
    return _reserved(INVALID_REQUEST)


def method_not_found() -> ErrorData:
    return _reserved(METHOD_NOT_FOUND)


def internal_error(message: str | None = None, data: Any = None) -> ErrorData:
    return _reserved(INTERNAL_ERROR, message, data)


def _is_well_formed(error: Mapping[str, Any]) -> bool:
    code = error.get("code")
    message = error.get("message")
    return (
        isinstance(code, int)
        and not isinstance(code, bool)
        and code != 0
        and isinstance(message, str)
        and message != ""
    )


def coerce_error(error: Any) -> ErrorData:
    """Map an arbitrary handler-supplied error onto the JSON-RPC error shape.

    Strings and anything without both a code and a message become an
    Internal Error. Well-formed ``{code, message, ...}`` mappings pass
    through unchanged so handlers can emit application error codes.
    """
    if isinstance(error, ErrorData):
        return error
    if isinstance(error, str):
        return internal_error(error)
    if isinstance(error, JSONRPCErrorException):
        return error.to_error_data()
    if isinstance(error, BaseException):
        return internal_error(str(error) or None)
    if isinstance(error, Mapping):
        if _is_well_formed(error):
            return ErrorData(**error)
        message = error.get("message")
        rest = {key: value for key, value in error.items() if key not in ("code", "message")}
        return internal_error(message if isinstance(message, str) else None, rest or None)
    return internal_error(str(error))


def format_response(request_id: RequestId | None, error: Any = None, result: Any = None) -> JSONRPCReply:
    """Build a response envelope carrying exactly one of error or result."""
    if error is not None:
        return JSONRPCError(jsonrpc=JSONRPC_VERSION, error=coerce_error(error), id=request_id)
    return JSONRPCResponse(jsonrpc=JSONRPC_VERSION, result=result, id=request_id)


def error_response(request_id: RequestId | None, error: ErrorData) -> JSONRPCError:
    return JSONRPCError(jsonrpc=JSONRPC_VERSION, error=error, id=request_id)


__all__ = [
    "JSONRPCErrorException",
    "coerce_error",
    "error_response",
    "format_response",
    "internal_error",
    "invalid_request",
    "method_not_found",
    "parse_error",
]
