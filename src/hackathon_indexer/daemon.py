"""Main daemon - wires the ingestion pipeline together."""

from __future__ import annotations

import asyncio
import logging
import signal

from hackathon_indexer.chain.contracts import ContractQueries
from hackathon_indexer.chain.resolver import EndpointResolver
from hackathon_indexer.errors import (
    EndpointUnreachable,
    StreamingUnsupported,
    SubscriptionError,
)
from hackathon_indexer.ingest.backfill import BackfillCoordinator
from hackathon_indexer.ingest.dispatch import Dispatcher
from hackathon_indexer.ingest.handlers import Reconciler
from hackathon_indexer.ingest.subscriber import LogSubscriber
from hackathon_indexer.ingest.supervisor import supervise
from hackathon_indexer.models.config import IndexerConfig
from hackathon_indexer.models.records import BackfillResult
from hackathon_indexer.storage.sqlite import SQLiteIndexStore

log = logging.getLogger(__name__)


class IndexerDaemon:
    """Chain-event ingestion daemon.

    Connects to the active network, closes the gap since the last checkpoint,
    then follows the chain live over the websocket. Without a streaming
    transport it falls back to a backfill pass every ``sync_interval`` seconds.
    """

    def __init__(self, cfg: IndexerConfig) -> None:
        self._cfg = cfg
        self._stop = asyncio.Event()

        profile = cfg.network
        if not profile.registry_address or not profile.ticket_address:
            raise ValueError(
                f"Network {profile.name!r} needs both registry_address and ticket_address"
            )
        if not profile.rpc_urls():
            raise ValueError(f"Network {profile.name!r} has no RPC URL")
        self._profile = profile

        # Core components
        self.store = SQLiteIndexStore(cfg.db_path)
        self.resolver = EndpointResolver(
            profile.rpc_urls(), profile.ws_url, cfg.call_timeout, profile.chain_id,
        )
        self.queries = ContractQueries(
            self.resolver, profile.registry_address, profile.ticket_address,
            cfg.call_timeout,
        )
        self.reconciler = Reconciler(self.store, self.queries)
        self.dispatcher = Dispatcher(self.store, self.reconciler)

        addresses = [self.queries.registry_address, self.queries.ticket_address]
        self.subscriber = LogSubscriber(
            self.resolver, self.dispatcher, addresses, cfg.heartbeat_interval,
        )
        self.backfill = BackfillCoordinator(
            self.resolver, self.dispatcher, self.store, addresses,
            cfg.batch_size, cfg.start_block,
        )

    @property
    def stopping(self) -> bool:
        return self._stop.is_set()

    async def start(self) -> None:
        """Initialize components and run until stopped."""
        log.info("Starting hackathon indexer")
        log.info("  Network: %s", self._profile.name)
        log.info("  Registry: %s", self.queries.registry_address)
        log.info("  Tickets: %s", self.queries.ticket_address)
        log.info("  RPC candidates: %s", ", ".join(self._profile.rpc_urls()))

        await self.store.initialize()
        try:
            await self.resolver.connect()
            await self.backfill.run()
            await self._follow_chain()
        finally:
            await self.resolver.close()
            await self.store.close()
            log.info("Indexer shut down cleanly")

    async def stop(self) -> None:
        """Signal the daemon to stop gracefully."""
        log.info("Stop requested")
        self._stop.set()

    async def backfill_once(self) -> BackfillResult:
        """Connect, run one backfill pass, disconnect."""
        await self.store.initialize()
        try:
            await self.resolver.connect()
            return await self.backfill.run()
        finally:
            await self.resolver.close()
            await self.store.close()

    async def _follow_chain(self) -> None:
        if not self.resolver.degraded:
            try:
                await supervise(
                    self._live_session, self._cfg.restart, self._stop,
                    on_restart=self._refresh_endpoint,
                )
            except StreamingUnsupported as exc:
                log.warning("Streaming unavailable (%s); switching to polling", exc)
            except (SubscriptionError, EndpointUnreachable) as exc:
                log.error("Live subscription abandoned (%s); switching to polling", exc)
        if not self._stop.is_set():
            await self._poll_loop()

    async def _live_session(self) -> None:
        # Backfill only once the subscription is active, so logs mined before
        # it started are fetched by range and later ones queue on the stream.
        await self.subscriber.run(self._stop, on_subscribed=self._catch_up)

    async def _catch_up(self) -> None:
        result = await self.backfill.run()
        if result.error:
            await self._refresh_endpoint()
            await self.backfill.run()

    async def _refresh_endpoint(self) -> None:
        """Re-walk the RPC candidates; keep the current endpoint if none answers."""
        try:
            await self.resolver.reconnect()
        except EndpointUnreachable as exc:
            log.error("No RPC endpoint reachable: %s", exc)

    async def _poll_loop(self) -> None:
        log.info("Polling every %ds", self._cfg.sync_interval)
        while not self._stop.is_set():
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._cfg.sync_interval)
            except asyncio.TimeoutError:
                result = await self.backfill.run()
                if result.error:
                    await self._refresh_endpoint()


async def run_daemon(cfg: IndexerConfig) -> None:
    """Entry point for running the daemon."""
    daemon = IndexerDaemon(cfg)

    loop = asyncio.get_running_loop()

    def _signal_handler():
        asyncio.ensure_future(daemon.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _signal_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
