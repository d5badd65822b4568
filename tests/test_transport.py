"""Tests for serving a stream over transports.

Uses an in-memory queue transport for the serve loop, StringIO for stdio,
and a real localhost socket for the WebSocket server.
"""

from __future__ import annotations

import asyncio
import io
import json

import pytest
import websockets

from rpcstream.config.settings import ServerSettings
from rpcstream.rpc.registry import HandlerRegistry
from rpcstream.server import JSONRPCWebSocketServer
from rpcstream.stream import JSONRPCServerStream, StdioTransport, Transport


class QueueTransport:
    """In-memory transport: tests push inbound chunks and read what was sent."""

    def __init__(self) -> None:
        self.inbound: asyncio.Queue[str | None] = asyncio.Queue()
        self.sent: list[str] = []

    async def send_message(self, message: str) -> None:
        self.sent.append(message)

    async def receive_message(self) -> str:
        chunk = await self.inbound.get()
        if chunk is None:
            raise EOFError
        return chunk


def test_transports_satisfy_protocol():
    assert isinstance(QueueTransport(), Transport)
    assert isinstance(StdioTransport(io.StringIO(), io.StringIO()), Transport)


@pytest.mark.asyncio
async def test_serve_until_eof_flushes_pending_replies():
    stream = JSONRPCServerStream()

    async def slow_echo(params):
        await asyncio.sleep(0.01)
        return params

    stream.rpc.register_method("echo", slow_echo)
    transport = QueueTransport()
    for chunk in (
        '{"jsonrpc":"2.0","method":"echo","params":"one","id":1}',
        "not json",
        '[{"jsonrpc":"2.0","method":"echo","params":"a","id":"a"},{"jsonrpc":"2.0","method":"echo","params":"b","id":"b"}]',
        None,
    ):
        transport.inbound.put_nowait(chunk)

    await asyncio.wait_for(stream.serve(transport), timeout=2)

    replies = [json.loads(message) for message in transport.sent]
    assert {"jsonrpc": "2.0", "error": {"code": -32700, "message": "Parse error"}, "id": None} in replies
    assert {"jsonrpc": "2.0", "result": "one", "id": 1} in replies
    assert [
        {"jsonrpc": "2.0", "result": "a", "id": "a"},
        {"jsonrpc": "2.0", "result": "b", "id": "b"},
    ] in replies
    assert len(replies) == 3


@pytest.mark.asyncio
async def test_stdio_transport_round_trip():
    stdin = io.StringIO(
        '{"jsonrpc":"2.0","method":"echo","params":[1,2],"id":1}\n{"jsonrpc":"2.0","method":"echo"}\n'
    )
    stdout = io.StringIO()
    stream = JSONRPCServerStream()
    stream.rpc.register_method("echo", lambda params: params)

    await asyncio.wait_for(stream.serve(StdioTransport(stdin, stdout)), timeout=2)

    assert stdout.getvalue() == '{"jsonrpc":"2.0","result":[1,2],"id":1}\n'


@pytest.mark.asyncio
async def test_stdio_transport_raises_eof():
    transport = StdioTransport(io.StringIO(""), io.StringIO())
    with pytest.raises(EOFError):
        await transport.receive_message()


def _server_url(server: JSONRPCWebSocketServer) -> str:
    assert server._server is not None
    port = server._server.sockets[0].getsockname()[1]
    return f"ws://127.0.0.1:{port}"


@pytest.mark.asyncio
async def test_websocket_server_batch_round_trip():
    def setup(registry: HandlerRegistry) -> None:
        registry.register_method("add", lambda params: params[0] + params[1])

    server = JSONRPCWebSocketServer(setup, ServerSettings(host="127.0.0.1", port=0))
    await server.start_server()

    try:
        async with websockets.connect(_server_url(server)) as ws:
            await ws.send('[{"jsonrpc":"2.0","method":"add","params":[1,2],"id":1},{"jsonrpc":"2.0","method":"x","id":2}]')
            reply = json.loads(await asyncio.wait_for(ws.recv(), timeout=2))
            assert server.connections == 1

        assert reply == [
            {"jsonrpc": "2.0", "result": 3, "id": 1},
            {"jsonrpc": "2.0", "error": {"code": -32601, "message": "Method not found"}, "id": 2},
        ]
    finally:
        await server.stop_server()
