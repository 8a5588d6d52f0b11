"""Log subscription engine - one live session over the streaming transport."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from hackathon_indexer.errors import StreamingUnsupported, SubscriptionError
from hackathon_indexer.ingest.dispatch import LIVE_SOURCE, Dispatcher
from hackathon_indexer.interfaces.chain import ChainEndpoint
from hackathon_indexer.interfaces.stream import LogStream

log = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    DISCONNECTED = "disconnected"
    SUBSCRIBING = "subscribing"
    LISTENING = "listening"
    ERROR = "error"
    DONE = "done"


class LogSubscriber:
    """Subscribes to both tracked contracts and dispatches logs in delivery order.

    ``run()`` is a single session: it returns on stop and raises on transport
    failure. Reconnecting is the supervisor's job.
    """

    def __init__(
        self,
        chain: ChainEndpoint,
        dispatcher: Dispatcher,
        addresses: list[str],
        heartbeat_interval: float = 30.0,
    ) -> None:
        self._chain = chain
        self._dispatcher = dispatcher
        self._addresses = list(addresses)
        self._heartbeat_interval = heartbeat_interval
        self.state = SubscriptionState.DISCONNECTED
        self.received = 0
        self.sessions = 0

    async def run(
        self,
        stop: asyncio.Event,
        on_subscribed: Callable[[], Awaitable[object]] | None = None,
    ) -> None:
        """One session. ``on_subscribed`` runs once the subscription is active
        and before the stream is drained; logs arriving meanwhile stay queued
        on the stream.
        """
        self.state = SubscriptionState.SUBSCRIBING
        if self._chain.degraded:
            self.state = SubscriptionState.ERROR
            raise StreamingUnsupported("Resolver is in polling mode; cannot subscribe")

        try:
            stream = await self._chain.open_stream()
        except (StreamingUnsupported, SubscriptionError):
            self.state = SubscriptionState.ERROR
            raise

        try:
            await stream.subscribe(self._addresses)
            self.sessions += 1
            self.state = SubscriptionState.LISTENING
            log.info("Listening for logs from %s", ", ".join(self._addresses))
            if on_subscribed is not None:
                await on_subscribed()
            await self._listen(stream, stop)
        except SubscriptionError as exc:
            self.state = SubscriptionState.ERROR
            log.error("Subscription session ended: %s", exc)
            raise
        finally:
            await stream.close()

    async def _listen(self, stream: LogStream, stop: asyncio.Event) -> None:
        stop_task = asyncio.ensure_future(stop.wait())
        receive_task: asyncio.Future | None = None
        try:
            while not stop.is_set():
                if receive_task is None:
                    receive_task = asyncio.ensure_future(stream.receive())
                done, _ = await asyncio.wait(
                    {receive_task, stop_task},
                    timeout=self._heartbeat_interval,
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if receive_task in done:
                    chain_log = receive_task.result()
                    receive_task = None
                    self.received += 1
                    await self._dispatcher.dispatch(chain_log, LIVE_SOURCE)
                elif not done:
                    log.info(
                        "Subscription alive: %d logs received, %d dispatched, %d dropped",
                        self.received, self._dispatcher.dispatched, self._dispatcher.dropped,
                    )
            self.state = SubscriptionState.DONE
            log.info("Subscription stopped")
        finally:
            for task in (receive_task, stop_task):
                if task is not None and not task.done():
                    task.cancel()
