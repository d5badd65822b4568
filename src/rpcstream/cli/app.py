"""Typer CLI entrypoints."""

from __future__ import annotations

import asyncio
from typing import Annotated, Any

import typer
from loguru import logger

from rpcstream.config.settings import load_settings
from rpcstream.logging_utils import configure_logging
from rpcstream.rpc.registry import HandlerRegistry
from rpcstream.server import JSONRPCWebSocketServer
from rpcstream.stream import JSONRPCServerStream, StdioTransport

app = typer.Typer(name="rpcstream", help="JSON-RPC 2.0 server stream", add_completion=False)


def register_demo_methods(registry: HandlerRegistry) -> None:
    """Methods served by the CLI: echo returns its params, ping returns "pong"."""

    def _echo(params: Any) -> Any:
        return params

    def _ping(params: Any) -> str:
        return "pong"

    registry.register_method("echo", _echo)
    registry.register_method("ping", _ping)


@app.command()
def stdio(
    ignore_version: Annotated[
        bool | None,
        typer.Option("--ignore-version/--check-version", help="Skip jsonrpc version validation"),
    ] = None,
) -> None:
    """Serve JSON-RPC over stdin/stdout, one message or batch per line."""
    configure_logging(profile="default")
    settings = load_settings(ignore_version=ignore_version)
    logger.info("rpc.stdio.start ignore_version={}", settings.ignore_version)

    async def _run() -> None:
        stream = JSONRPCServerStream(settings)
        register_demo_methods(stream.rpc)
        try:
            await stream.serve(StdioTransport())
        finally:
            stream.close()

    asyncio.run(_run())
    logger.info("rpc.stdio.stopped")


@app.command()
def ws(
    host: Annotated[str | None, typer.Option("--host", help="Bind host")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Bind port")] = None,
    ignore_version: Annotated[
        bool | None,
        typer.Option("--ignore-version/--check-version", help="Skip jsonrpc version validation"),
    ] = None,
) -> None:
    """Serve JSON-RPC over WebSocket, one server stream per connection."""
    configure_logging(profile="console")
    settings = load_settings(host=host, port=port, ignore_version=ignore_version)
    server = JSONRPCWebSocketServer(register_demo_methods, settings)

    async def _run() -> None:
        await server.start_server()
        try:
            await asyncio.Event().wait()
        finally:
            await server.stop_server()

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.info("rpc.ws.interrupted")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
