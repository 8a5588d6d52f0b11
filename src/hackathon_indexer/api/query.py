"""Store query surface - JSON-ready reads for clients that never touch a node."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from hackathon_indexer.errors import DuplicateRecordError
from hackathon_indexer.interfaces.store import IndexStore
from hackathon_indexer.models.records import EventRecord

log = logging.getLogger(__name__)

TEST_EVENT_ORGANIZER = "0xad6F55f669eaf666b7628d7Bd482Eb000e24D687"


class IndexQueryService:
    """Read accessors over the store, returning plain dicts.

    Carries no reconciliation logic; the pipeline is the only writer apart
    from :meth:`create_test_event`.
    """

    def __init__(self, store: IndexStore, registry_address: str = "") -> None:
        self._store = store
        self._registry_address = registry_address

    # ── Events ─────────────────────────────────────────────

    async def list_events(self) -> list[dict]:
        return [e.to_dict() for e in await self._store.list_events()]

    async def get_event(self, event_id: str) -> dict | None:
        if self._registry_address:
            record = await self._store.get_event(self._registry_address, str(event_id))
        else:
            record = await self._store.find_event(str(event_id))
        return record.to_dict() if record else None

    async def get_events_by_organizer(self, organizer: str) -> list[dict]:
        return [e.to_dict() for e in await self._store.get_events_by_organizer(organizer)]

    # ── Participants, sponsors, tickets ────────────────────

    async def get_participants(self, event_id: str) -> list[dict]:
        return [p.to_dict() for p in await self._store.get_participants(str(event_id))]

    async def get_sponsors(self, event_id: str) -> list[dict]:
        return [s.to_dict() for s in await self._store.get_sponsors(str(event_id))]

    async def get_event_tickets(self, event_id: str) -> list[dict]:
        return [t.to_dict() for t in await self._store.get_tickets_by_event(str(event_id))]

    async def get_tickets_by_holder(self, holder: str) -> list[dict]:
        return [t.to_dict() for t in await self._store.get_tickets_by_holder(holder)]

    # ── Ingestion health ───────────────────────────────────

    async def get_stats(self) -> dict:
        return (await self._store.get_stats()).to_dict()

    async def get_recent_ingestion(self, limit: int = 50, status: str | None = None) -> list[dict]:
        return [e.to_dict() for e in await self._store.get_ingestion_log(limit, status)]

    # ── Seeding ────────────────────────────────────────────

    async def create_test_event(self) -> dict:
        """Insert the fixed fixture event (id "1"), or return it if present."""
        now = datetime.now(timezone.utc)
        record = EventRecord(
            contract_address=self._registry_address,
            event_id="1",
            organizer=TEST_EVENT_ORGANIZER,
            title="Test Hackathon",
            description="This is a test hackathon event",
            start_time=1700000000,
            end_time=1700100000,
            location="Shanghai",
            max_participants=100,
            participant_count=0,
            active=True,
            created_at=int(now.timestamp()),
            synced_at=now.isoformat(),
        )
        try:
            await self._store.create_event(record)
            log.info("Created test event %s", record.event_id)
        except DuplicateRecordError:
            log.info("Test event %s already exists", record.event_id)
            existing = await self._store.get_event(self._registry_address, record.event_id)
            if existing is not None:
                return existing.to_dict()
        return record.to_dict()
