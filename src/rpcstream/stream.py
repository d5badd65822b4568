"""Duplex JSON-RPC server stream.

Text or bytes go in through ``write``; serialized replies come out of the
``outbound`` queue. ``serve`` pumps both directions over a ``Transport``.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import re
import sys
from typing import Any, Protocol, TextIO, runtime_checkable

import websockets
import websockets.asyncio.client
import websockets.asyncio.server
from loguru import logger

from rpcstream.config.settings import ServerSettings
from rpcstream.rpc.batch import BatchCorrelator
from rpcstream.rpc.dispatcher import Dispatcher
from rpcstream.rpc.registry import HandlerRegistry
from rpcstream.rpc.types import JSONRPCReply, encode_json, reply_to_dict

_WHITESPACE = re.compile(r"[ \t\n\r]*")

Chunk = str | bytes | bytearray | memoryview


@runtime_checkable
class Transport(Protocol):
    """Bidirectional message transport.

    ``receive_message`` raises EOFError once the peer has finished sending.
    """

    async def send_message(self, message: str) -> None:
        """Send a serialized message."""
        ...

    async def receive_message(self) -> Chunk:
        """Receive the next chunk. Blocks until one is available."""
        ...


class StdioTransport:
    """Line-oriented transport over text streams (stdin/stdout by default)."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    async def send_message(self, message: str) -> None:
        self._stdout.write(message)
        self._stdout.flush()

    async def receive_message(self) -> str:
        line = await asyncio.to_thread(self._stdin.readline)
        if not line:
            raise EOFError("stdin closed")
        return line


class WebSocketTransport:
    """WebSocket transport adapter for the server stream."""

    def __init__(
        self,
        ws: websockets.asyncio.server.ServerConnection | websockets.asyncio.client.ClientConnection,
    ) -> None:
        self._ws = ws

    async def send_message(self, message: str) -> None:
        await self._ws.send(message.rstrip("\n"))

    async def receive_message(self) -> Chunk:
        try:
            return await self._ws.recv()
        except websockets.ConnectionClosed as exc:
            raise EOFError("websocket closed") from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


class JSONRPCServerStream:
    """Server-side JSON-RPC 2.0 endpoint between inbound chunks and outbound replies."""

    def __init__(
        self,
        settings: ServerSettings | None = None,
        *,
        ignore_version: bool | None = None,
        registry: HandlerRegistry | None = None,
    ) -> None:
        settings = settings or ServerSettings()
        if ignore_version is not None:
            settings = settings.model_copy(update={"ignore_version": ignore_version})
        self.settings = settings
        self.rpc = registry if registry is not None else HandlerRegistry()
        self.outbound: asyncio.Queue[str] = asyncio.Queue()
        self.dispatcher = Dispatcher(self.rpc, self._push, ignore_version=settings.ignore_version)
        self._decoder = json.JSONDecoder(parse_constant=_reject_constant)

    @property
    def correlator(self) -> BatchCorrelator:
        return self.dispatcher.correlator

    def write(self, chunk: Chunk) -> None:
        """Feed one inbound chunk.

        The chunk may hold several JSON values, newline separated or back to
        back. An undecodable value yields one Parse error and scanning resumes
        on the next line; without a further newline the rest of the chunk is
        dropped. Later chunks are unaffected.

        Batches are dispatched on the next tick of the running event loop, or
        immediately when no loop is running.
        """
        if isinstance(chunk, (bytes, bytearray, memoryview)):
            try:
                text = bytes(chunk).decode("utf-8")
            except UnicodeDecodeError:
                logger.warning("rpc.stream.decode_failed reason=utf-8 size={}", len(chunk))
                self.dispatcher.parse_error()
                return
        else:
            text = chunk

        index = 0
        end = len(text)
        while True:
            index = _WHITESPACE.match(text, index).end()
            if index >= end:
                return
            try:
                value, index = self._decoder.raw_decode(text, index)
            except ValueError as exc:
                logger.debug("rpc.stream.decode_failed pos={} error={}", index, exc)
                self.dispatcher.parse_error()
                newline = text.find("\n", index)
                if newline < 0:
                    return
                index = newline + 1
                continue
            self.dispatcher.handle_message(value)

    async def read(self) -> str:
        """Wait for the next serialized outbound message."""
        message = await self.outbound.get()
        self.outbound.task_done()
        return message

    def _push(self, unit: JSONRPCReply | list[JSONRPCReply]) -> None:
        payload: Any
        if isinstance(unit, list):
            payload = [reply_to_dict(reply) for reply in unit]
        else:
            payload = reply_to_dict(unit)
        message = encode_json(payload)
        if self.settings.line_delimited:
            message += "\n"
        self.outbound.put_nowait(message)

    async def serve(self, transport: Transport) -> None:
        """Pump inbound chunks from ``transport`` and send replies back.

        Returns after the transport reports EOF and in-flight handlers have
        finished and their replies have been sent.
        """
        sender = asyncio.create_task(self._send_outbound(transport))
        try:
            while True:
                try:
                    chunk = await transport.receive_message()
                except EOFError:
                    logger.debug("rpc.stream.eof")
                    break
                self.write(chunk)
            await self._drain(sender)
        finally:
            sender.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sender

    async def _drain(self, sender: asyncio.Task[None]) -> None:
        # Let batch members scheduled with call_soon reach their handlers.
        await asyncio.sleep(0)
        await self.rpc.join()
        flushed = asyncio.create_task(self.outbound.join())
        try:
            await asyncio.wait({flushed, sender}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            flushed.cancel()

    async def _send_outbound(self, transport: Transport) -> None:
        while True:
            message = await self.outbound.get()
            try:
                await transport.send_message(message)
            finally:
                self.outbound.task_done()

    def close(self) -> None:
        """Cancel handler tasks that are still running."""
        self.rpc.cancel_pending()
        if self.correlator.pending:
            logger.warning("rpc.stream.closed pending_batches={}", self.correlator.pending)


__all__ = [
    "Chunk",
    "JSONRPCServerStream",
    "StdioTransport",
    "Transport",
    "WebSocketTransport",
]
