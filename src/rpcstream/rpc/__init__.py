"""RPC package.

JSON-RPC 2.0 server-side protocol engine: validation, dispatch, reply
formatting and batch correlation.
"""

from rpcstream.rpc.batch import BatchCorrelationError, BatchCorrelator
from rpcstream.rpc.dispatcher import Dispatcher
from rpcstream.rpc.errors import JSONRPCErrorException, coerce_error, format_response
from rpcstream.rpc.registry import Handler, HandlerRegistry
from rpcstream.rpc.reply import NullReplySink, ReplySink
from rpcstream.rpc.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
    JSONRPCError,
    JSONRPCReply,
    JSONRPCResponse,
    RequestId,
)

__all__ = [
    "BatchCorrelationError",
    "BatchCorrelator",
    "Dispatcher",
    "ErrorData",
    "Handler",
    "HandlerRegistry",
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "JSONRPCError",
    "JSONRPCErrorException",
    "JSONRPCReply",
    "JSONRPCResponse",
    "METHOD_NOT_FOUND",
    "NullReplySink",
    "PARSE_ERROR",
    "ReplySink",
    "RequestId",
    "coerce_error",
    "format_response",
]
