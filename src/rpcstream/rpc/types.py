"""JSON-RPC 2.0 type definitions.

Response envelopes emitted by the server stream, plus the reserved error codes.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict

RequestId = str | int | float

JSONRPC_VERSION = "2.0"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

ERROR_MESSAGES: dict[int, str] = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
}


class ErrorData(BaseModel):
    """Error information for JSON-RPC error responses.

    Extra keys supplied by a handler are kept so custom application
    errors pass through unchanged.
    """

    code: int
    message: str
    data: Any = None

    model_config = ConfigDict(extra="allow")

    def to_dict(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json")
        if "data" not in self.model_fields_set:
            payload.pop("data", None)
        return payload


class JSONRPCError(BaseModel):
    """A response to a request that indicates an error occurred."""

    jsonrpc: str
    error: ErrorData
    id: RequestId | None

    model_config = ConfigDict(extra="forbid")


class JSONRPCResponse(BaseModel):
    """A successful (non-error) response to a request."""

    jsonrpc: str
    result: Any
    id: RequestId | None

    model_config = ConfigDict(extra="forbid")


JSONRPCReply = JSONRPCResponse | JSONRPCError


def reply_to_dict(reply: JSONRPCReply) -> dict[str, Any]:
    """Wire form of a reply; error.data only appears when it was supplied."""
    if isinstance(reply, JSONRPCError):
        return {"jsonrpc": reply.jsonrpc, "error": reply.error.to_dict(), "id": reply.id}
    return reply.model_dump(mode="json")


def encode_json(payload: Any) -> str:
    """Compact JSON text; NaN and Infinity are rejected with ValueError."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


__all__ = [
    "ERROR_MESSAGES",
    "ErrorData",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPCError",
    "JSONRPCReply",
    "JSONRPCResponse",
    "JSONRPC_VERSION",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "RequestId",
    "encode_json",
    "reply_to_dict",
]
