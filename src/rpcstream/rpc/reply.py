"""Single-shot reply handles passed to method handlers."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

from rpcstream.rpc.errors import error_response, format_response, internal_error
from rpcstream.rpc.types import JSONRPCReply, RequestId, encode_json, reply_to_dict

Deliver = Callable[[JSONRPCReply], None]


class ReplySink:
    """Delivers exactly one formatted reply for a request.

    Calling the sink formats ``(error, result)`` into a response envelope and
    hands it to ``deliver``. A reply that cannot be encoded as JSON is
    replaced by an Internal Error for the same id. Later calls are ignored
    and return False.
    """

    def __init__(self, request_id: RequestId | None, deliver: Deliver) -> None:
        self._request_id = request_id
        self._deliver = deliver
        self._done = False

    @property
    def request_id(self) -> RequestId | None:
        return self._request_id

    @property
    def done(self) -> bool:
        """Whether a reply has already been accepted."""
        return self._done

    def __call__(self, error: Any = None, result: Any = None) -> bool:
        if self._done:
            logger.warning("rpc.reply.duplicate id={}", self._request_id)
            return False
        reply = self._encodable(format_response(self._request_id, error, result))
        self._done = True
        self._deliver(reply)
        return True

    def _encodable(self, reply: JSONRPCReply) -> JSONRPCReply:
        try:
            encode_json(reply_to_dict(reply))
        except (TypeError, ValueError) as exc:
            logger.warning("rpc.reply.unserializable id={} error={}", self._request_id, exc)
            return error_response(self._request_id, internal_error("Reply is not JSON serializable"))
        return reply


class NullReplySink(ReplySink):
    """Sink for notifications: accepts calls but never produces output."""

    def __init__(self) -> None:
        super().__init__(None, lambda reply: None)

    def __call__(self, error: Any = None, result: Any = None) -> bool:
        self._done = True
        return False


__all__ = ["Deliver", "NullReplySink", "ReplySink"]
