"""IndexStore protocol - reconciled entities plus the ingestion audit trail."""

from __future__ import annotations

from typing import Protocol

from hackathon_indexer.models.records import (
    EventRecord,
    IngestionLogEntry,
    IngestionStats,
    ParticipantRecord,
    SponsorRecord,
    TicketRecord,
)


class IndexStore(Protocol):
    """Persists reconciled chain state for readers that never touch a node."""

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Events ─────────────────────────────────────────────

    async def create_event(self, record: EventRecord) -> None:
        """Raises DuplicateRecordError if (contract, event id) exists."""
        ...

    async def update_event(self, record: EventRecord) -> None:
        ...

    async def get_event(self, contract_address: str, event_id: str) -> EventRecord | None:
        ...

    async def find_event(self, event_id: str) -> EventRecord | None:
        ...

    async def list_events(self) -> list[EventRecord]:
        ...

    async def get_events_by_organizer(self, organizer: str) -> list[EventRecord]:
        ...

    async def set_participant_count(
        self, contract_address: str, event_id: str, count: int
    ) -> bool:
        """Returns False when the parent event is not stored."""
        ...

    # ── Participants ───────────────────────────────────────

    async def create_participant(self, record: ParticipantRecord) -> None:
        ...

    async def update_participant(self, record: ParticipantRecord) -> None:
        ...

    async def get_participant(
        self, contract_address: str, event_id: str, wallet: str
    ) -> ParticipantRecord | None:
        ...

    async def get_participants(self, event_id: str) -> list[ParticipantRecord]:
        ...

    async def count_participants(self, contract_address: str, event_id: str) -> int:
        ...

    # ── Sponsors ───────────────────────────────────────────

    async def create_sponsor(self, record: SponsorRecord) -> None:
        ...

    async def get_sponsors(self, event_id: str) -> list[SponsorRecord]:
        ...

    # ── Tickets ────────────────────────────────────────────

    async def create_ticket(self, record: TicketRecord) -> None:
        ...

    async def get_ticket(self, contract_address: str, token_id: str) -> TicketRecord | None:
        ...

    async def get_tickets_by_event(self, event_id: str) -> list[TicketRecord]:
        ...

    async def get_tickets_by_holder(self, holder: str) -> list[TicketRecord]:
        ...

    async def mark_ticket_used(self, contract_address: str, token_id: str) -> None:
        ...

    # ── Audit trail ────────────────────────────────────────

    async def record_ingestion(
        self,
        kind: str,
        block_number: int,
        tx_hash: str,
        status: str,
        error: str | None = None,
        message: str | None = None,
    ) -> None:
        ...

    async def get_last_synced_block(self, kind: str) -> int | None:
        """Highest block with a success entry of ``kind``, or None."""
        ...

    async def has_successful_ingestion(self, tx_hash: str, kind: str) -> bool:
        ...

    async def get_ingestion_log(
        self, limit: int = 50, status: str | None = None
    ) -> list[IngestionLogEntry]:
        ...

    async def get_stats(self) -> IngestionStats:
        ...
