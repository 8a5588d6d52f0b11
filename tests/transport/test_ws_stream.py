"""Websocket log stream against a local eth_subscribe server."""

from __future__ import annotations

import asyncio

import pytest

from hackathon_indexer.chain.stream import WebSocketLogStream
from hackathon_indexer.errors import SubscriptionError
from tests.factories import REGISTRY, TICKETS, make_event_created_log, make_ticket_used_log
from tests.transport.fake_node import DEAD_WS_PORT, rpc_log


async def test_open_unreachable_raises_subscription_error():
    with pytest.raises(SubscriptionError, match="connect"):
        await WebSocketLogStream.open(f"ws://127.0.0.1:{DEAD_WS_PORT}")


async def test_notification_before_subscribe_reply_is_kept(fake_ws_node):
    url, outbox, subscriptions = fake_ws_node
    await outbox.put(rpc_log(make_event_created_log(1, block_number=5)))
    stream = await WebSocketLogStream.open(url)

    try:
        sub_id = await stream.subscribe([REGISTRY, TICKETS])
        await outbox.put(rpc_log(make_ticket_used_log(9, block_number=6)))

        first = await asyncio.wait_for(stream.receive(), timeout=2)
        second = await asyncio.wait_for(stream.receive(), timeout=2)
    finally:
        await stream.close()

    assert sub_id == "0xfeed"
    assert subscriptions == [["logs", {"address": [REGISTRY, TICKETS]}]]
    assert (first.block_number, first.address) == (5, REGISTRY)
    assert (second.block_number, second.address) == (6, TICKETS)


async def test_server_close_surfaces_as_subscription_error(fake_ws_node):
    url, outbox, _ = fake_ws_node
    stream = await WebSocketLogStream.open(url)

    try:
        await stream.subscribe([REGISTRY])
        await outbox.put(None)
        with pytest.raises(SubscriptionError, match="closed"):
            await asyncio.wait_for(stream.receive(), timeout=2)
    finally:
        await stream.close()
