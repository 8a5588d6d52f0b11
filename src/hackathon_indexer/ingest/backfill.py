"""Backfill coordinator - replays historical logs from the last checkpoint."""

from __future__ import annotations

import asyncio
import logging

from hackathon_indexer.errors import PersistenceError
from hackathon_indexer.ingest.dispatch import BACKFILL_SOURCE, Dispatcher
from hackathon_indexer.interfaces.chain import ChainEndpoint
from hackathon_indexer.interfaces.store import IndexStore
from hackathon_indexer.models.records import BackfillResult

log = logging.getLogger(__name__)

CHECKPOINT_KIND = "event"

# Provider messages meaning "the range was fine, the result set was too big".
_TOO_MANY_RESULTS = (
    "query returned more than",
    "too many results",
    "too many logs",
    "response size exceeded",
    "block range is too wide",
)


def _is_oversized(exc: Exception) -> bool:
    msg = str(exc).lower()
    return any(marker in msg for marker in _TOO_MANY_RESULTS)


class BackfillCoordinator:
    """Walks [checkpoint + 1, head] in fixed-size batches.

    After each batch a ``success`` checkpoint entry is written at the batch's
    end block, so a restart resumes where the last complete batch stopped.
    """

    def __init__(
        self,
        chain: ChainEndpoint,
        dispatcher: Dispatcher,
        store: IndexStore,
        addresses: list[str],
        batch_size: int = 1000,
        start_block: int = 0,
    ) -> None:
        self._chain = chain
        self._dispatcher = dispatcher
        self._store = store
        self._addresses = list(addresses)
        self._batch_size = max(batch_size, 1)
        self._start_block = start_block
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> BackfillResult:
        if self._lock.locked():
            log.info("Backfill already in progress; skipping")
            return BackfillResult(from_block=0, to_block=0, completed=False, skipped=True)
        async with self._lock:
            return await self._run()

    async def _run(self) -> BackfillResult:
        checkpoint = await self._store.get_last_synced_block(CHECKPOINT_KIND)
        start = checkpoint + 1 if checkpoint is not None else self._start_block
        try:
            head = await self._chain.head_block()
        except Exception as exc:
            error = str(exc) or type(exc).__name__
            log.error("Could not read chain head: %s", error)
            return BackfillResult(
                from_block=start, to_block=start, completed=False,
                error=error, last_checkpoint=checkpoint,
            )
        result = BackfillResult(from_block=start, to_block=head, last_checkpoint=checkpoint)

        if start > head:
            log.debug("Backfill up to date (checkpoint %s, head %d)", checkpoint, head)
            return result

        log.info("Backfilling blocks %d-%d", start, head)
        current = start
        span = self._batch_size
        while current <= head:
            batch_end = min(current + span - 1, head)
            try:
                logs = await self._chain.get_logs(current, batch_end, self._addresses)
            except Exception as exc:
                if span > 1 and _is_oversized(exc):
                    span = max(span // 2, 1)
                    log.warning(
                        "Range %d-%d returned too many logs; retrying with %d blocks",
                        current, batch_end, span,
                    )
                    continue
                error = str(exc) or type(exc).__name__
                log.error("Backfill fetch failed for %d-%d: %s", current, batch_end, error)
                await self._checkpoint(batch_end, "failed", error=error)
                result.completed = False
                result.error = error
                return result

            for chain_log in sorted(logs, key=lambda entry: entry.sort_key()):
                await self._dispatcher.dispatch(chain_log, BACKFILL_SOURCE)
            if not await self._checkpoint(
                batch_end, "success",
                message=f"Backfilled {current}-{batch_end}: {len(logs)} logs",
            ):
                result.completed = False
                result.error = f"Checkpoint write failed at block {batch_end}"
                return result
            result.batches += 1
            result.logs += len(logs)
            result.last_checkpoint = batch_end
            log.info("Backfilled %d-%d (%d logs)", current, batch_end, len(logs))
            current = batch_end + 1

        return result

    async def _checkpoint(
        self, block: int, status: str, error: str | None = None, message: str | None = None
    ) -> bool:
        try:
            await self._store.record_ingestion(
                CHECKPOINT_KIND, block, "", status, error=error, message=message,
            )
        except PersistenceError as exc:
            log.error("Could not write %s checkpoint at block %d: %s", status, block, exc)
            return False
        return True
