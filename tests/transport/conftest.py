"""Transport fixtures: local JSON-RPC node (aiohttp) and websocket node (websockets)."""

from __future__ import annotations

import asyncio
import json

import pytest
import websockets

from tests.transport.fake_node import RPC_PORT, WS_PORT, FakeNode, serve_node


@pytest.fixture
async def fake_node():
    """Local HTTP JSON-RPC server on RPC_PORT.

    Returns (url, node). Tests script the node's chain id, head, logs and call results.
    """
    node = FakeNode()
    runner = await serve_node(node, RPC_PORT)
    yield f"http://127.0.0.1:{RPC_PORT}", node
    await runner.cleanup()


@pytest.fixture
async def fake_ws_node():
    """Local websocket server on WS_PORT answering eth_subscribe("logs").

    Returns (url, outbox): every raw log put in ``outbox`` is pushed to the
    subscriber as an eth_subscription notification.
    """
    outbox: asyncio.Queue = asyncio.Queue()
    subscriptions: list[list] = []

    async def handler(ws):
        request = json.loads(await ws.recv())
        subscriptions.append(request["params"])
        # A notification racing ahead of the subscribe reply
        if not outbox.empty():
            early = outbox.get_nowait()
            await ws.send(json.dumps({
                "jsonrpc": "2.0", "method": "eth_subscription",
                "params": {"subscription": "0xfeed", "result": early},
            }))
        await ws.send(json.dumps({"jsonrpc": "2.0", "id": request["id"], "result": "0xfeed"}))
        while True:
            raw_log = await outbox.get()
            if raw_log is None:
                await ws.close()
                return
            await ws.send(json.dumps({
                "jsonrpc": "2.0", "method": "eth_subscription",
                "params": {"subscription": "0xfeed", "result": raw_log},
            }))

    server = await websockets.serve(handler, "127.0.0.1", WS_PORT)
    yield f"ws://127.0.0.1:{WS_PORT}", outbox, subscriptions
    outbox.put_nowait(None)  # release a handler still waiting for logs
    server.close()
    await server.wait_closed()
