#!/usr/bin/env python3
"""Probe a running `rpcstream ws` server with a single request and a batch."""

import asyncio
import json
import sys

import websockets


async def probe(url: str) -> None:
    print("=== WS Probe ===")
    async with websockets.connect(url) as ws:
        await ws.send(json.dumps({"jsonrpc": "2.0", "method": "ping", "id": 1}))
        print(f"[RECV] {await ws.recv()}")

        batch = [
            {"jsonrpc": "2.0", "method": "echo", "params": {"n": 1}, "id": "a"},
            {"jsonrpc": "2.0", "method": "echo", "params": "note"},
            {"jsonrpc": "2.0", "method": "missing", "id": "b"},
        ]
        await ws.send(json.dumps(batch))
        print(f"[RECV] {await ws.recv()}")


if __name__ == "__main__":
    asyncio.run(probe(sys.argv[1] if len(sys.argv) > 1 else "ws://localhost:7893"))
