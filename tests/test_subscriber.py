"""Live subscription state machine and restart supervisor."""

from __future__ import annotations

import asyncio

import pytest

from hackathon_indexer.errors import (
    EndpointUnreachable,
    StreamingUnsupported,
    SubscriptionError,
)
from hackathon_indexer.ingest.subscriber import SubscriptionState
from hackathon_indexer.ingest.supervisor import supervise
from hackathon_indexer.models.config import RestartPolicy

from tests.factories import REGISTRY, TICKETS, make_contract_event, make_event_created_log
from tests.mocks import MockStream


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


# ── Subscriber ────────────────────────────────────────────────────


async def test_degraded_chain_never_listens(subscriber, mock_chain):
    mock_chain.degraded = True

    with pytest.raises(StreamingUnsupported):
        await subscriber.run(asyncio.Event())

    assert subscriber.state is SubscriptionState.ERROR
    assert subscriber.sessions == 0
    assert mock_chain.open_stream_calls == 0


async def test_logs_dispatched_in_delivery_order(subscriber, mock_chain, store, mock_queries):
    for event_id in (1, 2):
        mock_queries.events[event_id] = make_contract_event(event_id)
    stream = MockStream()
    mock_chain.streams.append(stream)
    logs = [make_event_created_log(2, block_number=9), make_event_created_log(1, block_number=8)]
    stream.push(*logs)
    stop = asyncio.Event()

    task = asyncio.create_task(subscriber.run(stop))
    await _wait_until(lambda: subscriber.received == 2)
    stop.set()
    await task

    assert subscriber.state is SubscriptionState.DONE
    assert stream.subscribed == [REGISTRY, TICKETS]
    assert stream.closed
    received = await store.get_ingestion_log(10, status="received")
    assert [e.tx_hash for e in reversed(received)] == [logs[0].tx_hash, logs[1].tx_hash]
    assert all(e.kind == "event_subscription" for e in received)


async def test_stop_while_idle_returns_cleanly(subscriber, mock_chain):
    mock_chain.streams.append(MockStream())
    stop = asyncio.Event()

    task = asyncio.create_task(subscriber.run(stop))
    await _wait_until(lambda: subscriber.state is SubscriptionState.LISTENING)
    await asyncio.sleep(0.12)  # at least one heartbeat
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert subscriber.state is SubscriptionState.DONE


async def test_transport_error_ends_session(subscriber, mock_chain):
    stream = MockStream()
    stream.push(SubscriptionError("websocket closed"))
    mock_chain.streams.append(stream)

    with pytest.raises(SubscriptionError):
        await subscriber.run(asyncio.Event())

    assert subscriber.state is SubscriptionState.ERROR
    assert stream.closed


async def test_rejected_subscribe_is_an_error(subscriber, mock_chain):
    stream = MockStream()
    stream.fail_subscribe = True
    mock_chain.streams.append(stream)

    with pytest.raises(SubscriptionError):
        await subscriber.run(asyncio.Event())

    assert subscriber.state is SubscriptionState.ERROR


# ── Supervisor ────────────────────────────────────────────────────


async def test_supervisor_retries_until_success():
    attempts = []

    async def run_once():
        attempts.append(1)
        if len(attempts) < 3:
            raise SubscriptionError("dropped")

    made = await supervise(run_once, RestartPolicy(delay=0.01, max_attempts=5), asyncio.Event())

    assert made == 3


async def test_supervisor_gives_up_after_max_attempts():
    async def run_once():
        raise SubscriptionError("dropped")

    with pytest.raises(SubscriptionError):
        await supervise(run_once, RestartPolicy(delay=0.01, max_attempts=2), asyncio.Event())


async def test_supervisor_refreshes_before_each_restart():
    events = []

    async def run_once():
        events.append("run")
        if events.count("run") == 1:
            raise EndpointUnreachable([("http://primary", "connection refused")])
        if events.count("run") == 2:
            raise SubscriptionError("dropped")

    async def refresh():
        events.append("refresh")

    made = await supervise(
        run_once, RestartPolicy(delay=0.01, max_attempts=5), asyncio.Event(), on_restart=refresh,
    )

    assert made == 3
    assert events == ["run", "refresh", "run", "refresh", "run"]


async def test_supervisor_does_not_retry_streaming_unsupported():
    calls = []

    async def run_once():
        calls.append(1)
        raise StreamingUnsupported("degraded")

    with pytest.raises(StreamingUnsupported):
        await supervise(run_once, RestartPolicy(delay=0.01), asyncio.Event())
    assert len(calls) == 1


async def test_supervisor_stop_interrupts_delay():
    stop = asyncio.Event()

    async def run_once():
        stop.set()
        raise SubscriptionError("dropped")

    made = await asyncio.wait_for(
        supervise(run_once, RestartPolicy(delay=60), stop), timeout=1,
    )
    assert made == 1


async def test_reconnect_after_session_failure(subscriber, mock_chain):
    broken = MockStream()
    broken.push(SubscriptionError("reset by peer"))
    healthy = MockStream()
    mock_chain.streams.extend([broken, healthy])
    stop = asyncio.Event()

    async def run_once():
        await subscriber.run(stop)

    task = asyncio.create_task(supervise(run_once, RestartPolicy(delay=0.01), stop))
    await _wait_until(lambda: subscriber.sessions == 2)
    stop.set()
    attempts = await asyncio.wait_for(task, timeout=1)

    assert attempts == 2
    assert broken.closed and healthy.closed


async def test_hook_runs_after_subscribe_before_draining(subscriber, mock_chain, store, mock_queries):
    stream = MockStream()
    mock_chain.streams.append(stream)
    mock_queries.events[1] = make_contract_event(1)
    stream.push(make_event_created_log(1, block_number=7))
    stop = asyncio.Event()
    seen = []

    async def hook():
        seen.append((stream.subscribed is not None, subscriber.received))

    task = asyncio.create_task(subscriber.run(stop, on_subscribed=hook))
    await _wait_until(lambda: subscriber.received == 1)
    stop.set()
    await asyncio.wait_for(task, timeout=1)

    assert seen == [(True, 0)]
