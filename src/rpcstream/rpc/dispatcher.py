"""JSON-RPC request, notification and batch dispatch."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from functools import partial
from typing import Any

from loguru import logger

from rpcstream.rpc.batch import BatchCorrelator
from rpcstream.rpc.errors import error_response, invalid_request, method_not_found, parse_error
from rpcstream.rpc.registry import HandlerRegistry
from rpcstream.rpc.reply import Deliver, NullReplySink, ReplySink
from rpcstream.rpc.types import JSONRPCError, JSONRPCReply
from rpcstream.rpc.validation import (
    expects_reply,
    has_handler,
    has_valid_id,
    has_valid_method,
    has_valid_version,
    is_request_shaped,
)

# Receives one unit of output: a standalone reply or a completed batch.
Emit = Callable[[JSONRPCReply | list[JSONRPCReply]], None]


class Dispatcher:
    """Routes decoded JSON-RPC input to registered handlers.

    Never raises for malformed input: every structural failure that owes a
    reply is turned into an error envelope, the rest are dropped.
    """

    def __init__(self, registry: HandlerRegistry, emit: Emit, *, ignore_version: bool = False) -> None:
        self.registry = registry
        self.ignore_version = ignore_version
        self._emit = emit
        self.correlator = BatchCorrelator(emit)

    def handle_message(self, message: Any) -> None:
        """Entry point for one decoded JSON value."""
        if isinstance(message, list):
            self.handle_batch(message)
        else:
            self.handle_request(message)

    def parse_error(self) -> None:
        logger.debug("rpc.dispatch.parse_error")
        self._emit(error_response(None, parse_error()))

    def handle_batch(self, batch: list[Any]) -> None:
        """Reserve a slot per reply-expecting member, then dispatch each on the next tick.

        Without a running event loop the members are dispatched in order once
        every slot is reserved.
        """
        if not batch:
            self._emit(error_response(None, invalid_request()))
            return

        token = self.correlator.open_batch()
        work: list[tuple[Any, Deliver | None]] = []
        for member in batch:
            deliver: Deliver | None = None
            if expects_reply(member):
                slot = self.correlator.reserve_slot(token)
                deliver = partial(self.correlator.resolve, token, slot)
            work.append((member, deliver))
        self.correlator.discard_if_empty(token)

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            for member, deliver in work:
                self.handle_request(member, deliver)
            return
        for member, deliver in work:
            loop.call_soon(self.handle_request, member, deliver)

    def handle_request(self, request: Any, deliver: Deliver | None = None) -> None:
        """Validate and dispatch a single envelope.

        ``deliver`` receives the reply; standalone requests emit directly.
        """
        deliver = deliver or self._emit

        if expects_reply(request):
            rejection = self._validate(request)
            if rejection is not None:
                logger.debug("rpc.dispatch.rejected id={} code={}", rejection.id, rejection.error.code)
                deliver(rejection)
                return

        if not has_valid_version(request, self.ignore_version):
            logger.debug("rpc.dispatch.ignored reason=version")
            return
        if not has_valid_method(request) or not has_handler(request, self.registry):
            logger.debug("rpc.dispatch.ignored reason=method method={!r}", request.get("method"))
            return

        reply: ReplySink
        if has_valid_id(request):
            reply = ReplySink(request["id"], deliver)
        else:
            reply = NullReplySink()
        self.registry.dispatch(request["method"], request.get("params"), reply)

    def _validate(self, request: Any) -> JSONRPCError | None:
        # First failing check wins.
        if not is_request_shaped(request):
            return error_response(None, invalid_request())
        request_id = request.get("id")
        if not has_valid_version(request, self.ignore_version):
            return error_response(request_id, invalid_request())
        if not has_valid_method(request):
            return error_response(request_id, invalid_request())
        if not has_handler(request, self.registry):
            return error_response(request_id, method_not_found())
        return None


__all__ = ["Dispatcher", "Emit"]
