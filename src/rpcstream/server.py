"""WebSocket server exposing one JSON-RPC server stream per connection."""

from __future__ import annotations

import uuid
from collections.abc import Callable

import websockets
from loguru import logger
from websockets.asyncio.server import ServerConnection

from rpcstream.config.settings import ServerSettings
from rpcstream.rpc.registry import HandlerRegistry
from rpcstream.stream import JSONRPCServerStream, WebSocketTransport


class JSONRPCWebSocketServer:
    """WebSocket server running one server stream per connection.

    ``setup`` registers handlers on each new connection's registry, so
    handler tasks and batch state never cross connections.
    """

    def __init__(
        self,
        setup: Callable[[HandlerRegistry], None],
        settings: ServerSettings | None = None,
    ) -> None:
        self._setup = setup
        self._settings = settings or ServerSettings()
        self._streams: dict[str, JSONRPCServerStream] = {}
        self._server: websockets.Server | None = None

    @property
    def url(self) -> str:
        return self._settings.url

    @property
    def connections(self) -> int:
        return len(self._streams)

    async def start_server(self) -> None:
        """Start WebSocket server."""
        self._server = await websockets.serve(self._handle_client, self._settings.host, self._settings.port)
        logger.info("rpc.ws.server.started url={}", self.url)

    async def stop_server(self) -> None:
        """Stop WebSocket server."""
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        logger.info("rpc.ws.server.stopped")

    async def _handle_client(self, websocket: ServerConnection) -> None:
        conn_id = uuid.uuid4().hex
        stream = JSONRPCServerStream(self._settings)
        self._setup(stream.rpc)
        self._streams[conn_id] = stream
        logger.info("rpc.ws.client.connected conn_id={}", conn_id)

        try:
            await stream.serve(WebSocketTransport(websocket))
        except websockets.ConnectionClosed:
            pass
        finally:
            stream.close()
            self._streams.pop(conn_id, None)
            logger.info("rpc.ws.client.disconnected conn_id={}", conn_id)


__all__ = ["JSONRPCWebSocketServer"]
