"""Dispatcher - audit every inbound log, classify it, route it to its handler."""

from __future__ import annotations

import logging

from hackathon_indexer.chain.topics import decode_log
from hackathon_indexer.errors import MalformedLogError, PersistenceError
from hackathon_indexer.ingest.handlers import Reconciler
from hackathon_indexer.interfaces.store import IndexStore
from hackathon_indexer.models.events import UnknownLog
from hackathon_indexer.models.logs import ChainLog
from hackathon_indexer.models.records import ReconcileResult

log = logging.getLogger(__name__)

LIVE_SOURCE = "event_subscription"
BACKFILL_SOURCE = "event_backfill"


class Dispatcher:
    """Shared entry point for live and backfill logs."""

    def __init__(self, store: IndexStore, reconciler: Reconciler) -> None:
        self._store = store
        self._reconciler = reconciler
        self.dispatched = 0
        self.dropped = 0

    async def dispatch(
        self, chain_log: ChainLog, source: str = LIVE_SOURCE
    ) -> ReconcileResult | None:
        """Process one log. Returns the handler result, or None if dropped.

        Never raises for handler-level failures; those land in the audit trail.
        """
        self.dispatched += 1
        try:
            await self._store.record_ingestion(
                source, chain_log.block_number, chain_log.tx_hash, "received",
                message=f"log {chain_log.log_index} from {chain_log.address}",
            )
        except PersistenceError as exc:
            log.error("Could not record received log %s: %s", chain_log.tx_hash, exc)

        try:
            decoded = decode_log(chain_log)
        except MalformedLogError as exc:
            log.warning("Malformed log in tx %s: %s", chain_log.tx_hash, exc)
            await self._record_failure(exc.kind, chain_log, str(exc))
            return ReconcileResult(kind=exc.kind, success=False, error=str(exc))

        if isinstance(decoded, UnknownLog):
            self.dropped += 1
            log.debug(
                "Dropping log with unknown signature %s (tx %s)",
                decoded.topic0, chain_log.tx_hash,
            )
            return None

        if chain_log.removed:
            log.debug("Node flagged log in tx %s as removed; processing anyway", chain_log.tx_hash)

        try:
            return await self._reconciler.handle(decoded)
        except PersistenceError as exc:
            log.error("Audit write failed for %s in tx %s: %s",
                      decoded.kind.value, chain_log.tx_hash, exc)
            return ReconcileResult(kind=decoded.kind.value, success=False, error=str(exc))

    async def _record_failure(self, kind: str, chain_log: ChainLog, error: str) -> None:
        try:
            await self._store.record_ingestion(
                kind, chain_log.block_number, chain_log.tx_hash, "failed", error=error,
            )
        except PersistenceError as exc:
            log.error("Could not record failure for tx %s: %s", chain_log.tx_hash, exc)
