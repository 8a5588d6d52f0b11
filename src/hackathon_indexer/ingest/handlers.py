"""Reconciliation handlers - re-fetch canonical contract state and persist it."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from hackathon_indexer.chain.topics import DecodedLog
from hackathon_indexer.errors import (
    ContractCallError,
    DuplicateRecordError,
    IndexerError,
    RecordNotFound,
)
from hackathon_indexer.interfaces.contract import ContractReader
from hackathon_indexer.interfaces.store import IndexStore
from hackathon_indexer.models.events import (
    EventCreated,
    ParticipantCheckedIn,
    ParticipantRegistered,
    SponsorAdded,
    TicketIssued,
    TicketUsed,
)
from hackathon_indexer.models.records import (
    EventRecord,
    ParticipantRecord,
    ReconcileResult,
    SponsorRecord,
    TicketRecord,
)

log = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class Reconciler:
    """One handler per decoded log variant.

    Every call writes exactly one audit entry (``success`` or ``failed``,
    tagged with the log's kind) and at most one domain write. Errors are
    recorded, never raised.
    """

    def __init__(self, store: IndexStore, queries: ContractReader) -> None:
        self._store = store
        self._queries = queries
        self._handlers: dict[type, Callable[..., Awaitable[str]]] = {
            EventCreated: self._on_event_created,
            ParticipantRegistered: self._on_participant_registered,
            ParticipantCheckedIn: self._on_participant_checked_in,
            SponsorAdded: self._on_sponsor_added,
            TicketIssued: self._on_ticket_issued,
            TicketUsed: self._on_ticket_used,
        }

    async def handle(self, decoded: DecodedLog) -> ReconcileResult:
        kind = decoded.kind.value
        chain_log = decoded.log
        handler = self._handlers[type(decoded)]
        try:
            message = await handler(decoded)
        except IndexerError as exc:
            log.warning(
                "%s failed (block %d, tx %s): %s",
                kind, chain_log.block_number, chain_log.tx_hash, exc,
            )
            return await self._record(decoded, success=False, error=str(exc))
        except Exception as exc:
            log.error("Unexpected error handling %s: %s", kind, exc, exc_info=True)
            return await self._record(
                decoded, success=False, error=f"{type(exc).__name__}: {exc}",
            )
        log.info("%s: %s", kind, message)
        return await self._record(decoded, success=True, message=message)

    async def _record(
        self,
        decoded: DecodedLog,
        success: bool,
        message: str = "",
        error: str | None = None,
    ) -> ReconcileResult:
        kind = decoded.kind.value
        await self._store.record_ingestion(
            kind,
            decoded.log.block_number,
            decoded.log.tx_hash,
            "success" if success else "failed",
            error=error,
            message=message or None,
        )
        return ReconcileResult(kind=kind, success=success, message=message, error=error)

    # ── Registry events ────────────────────────────────────

    async def _on_event_created(self, decoded: EventCreated) -> str:
        details = await self._queries.get_event_details(decoded.event_id)
        record = EventRecord(
            contract_address=self._queries.registry_address,
            event_id=str(decoded.event_id),
            organizer=details.organizer,
            title=details.title,
            description=details.description,
            start_time=details.start_time,
            end_time=details.end_time,
            location=details.location,
            max_participants=details.max_participants,
            participant_count=details.participant_count,
            active=details.active,
            created_at=details.created_at,
            synced_at=_now(),
        )
        try:
            await self._store.create_event(record)
        except DuplicateRecordError:
            await self._store.update_event(record)
            return f"Updated event {record.event_id} ({record.title})"
        return f"Saved event {record.event_id} ({record.title})"

    async def _on_participant_registered(self, decoded: ParticipantRegistered) -> str:
        participant = await self._queries.find_participant(decoded.event_id, decoded.wallet)
        if participant is None:
            raise RecordNotFound(
                f"Participant {decoded.wallet} not found in event {decoded.event_id}"
            )
        contract = self._queries.registry_address
        event_id = str(decoded.event_id)
        record = ParticipantRecord(
            contract_address=contract,
            event_id=event_id,
            wallet=participant.wallet,
            name=participant.name,
            registered_at=participant.registered_at,
            checked_in=participant.checked_in,
            check_in_time=participant.check_in_time,
        )
        try:
            await self._store.create_participant(record)
        except DuplicateRecordError:
            # Redelivery: refresh, but never count the same wallet twice.
            await self._store.update_participant(record)
            return f"Refreshed participant {record.wallet} in event {event_id}"

        count = await self._participant_count(decoded.event_id)
        if not await self._store.set_participant_count(contract, event_id, count):
            log.warning("Event %s not stored; participant count not updated", event_id)
            return f"Saved participant {record.wallet} in event {event_id} (event not indexed)"
        return f"Saved participant {record.wallet} in event {event_id} ({count} registered)"

    async def _participant_count(self, event_id: int) -> int:
        """Registry's current count; stored rows when the registry can't be read.

        Catch-up replays old registrations against an event row that already
        holds the current count, so the count is re-read rather than incremented.
        """
        try:
            details = await self._queries.get_event_details(event_id)
        except ContractCallError as exc:
            log.warning("Event %d count not readable (%s); using stored rows", event_id, exc)
            return await self._store.count_participants(
                self._queries.registry_address, str(event_id),
            )
        return details.participant_count

    async def _on_participant_checked_in(self, decoded: ParticipantCheckedIn) -> str:
        participant = await self._queries.find_participant(decoded.event_id, decoded.wallet)
        if participant is None:
            raise RecordNotFound(
                f"Participant {decoded.wallet} not found in event {decoded.event_id}"
            )
        contract = self._queries.registry_address
        event_id = str(decoded.event_id)
        stored = await self._store.get_participant(contract, event_id, decoded.wallet)
        if stored is None:
            raise RecordNotFound(
                f"Participant {decoded.wallet} of event {event_id} is not stored"
            )
        stored.checked_in = participant.checked_in
        stored.check_in_time = participant.check_in_time
        await self._store.update_participant(stored)
        return f"Checked in {stored.wallet} at event {event_id}"

    async def _on_sponsor_added(self, decoded: SponsorAdded) -> str:
        sponsor = await self._queries.find_sponsor(decoded.event_id, decoded.sponsor)
        if sponsor is None:
            raise RecordNotFound(
                f"Sponsor {decoded.sponsor} not found in event {decoded.event_id}"
            )
        record = SponsorRecord(
            contract_address=self._queries.registry_address,
            event_id=str(decoded.event_id),
            wallet=sponsor.wallet,
            name=sponsor.name,
            amount=str(sponsor.amount),
            sponsored_at=sponsor.sponsored_at,
        )
        await self._store.create_sponsor(record)
        return f"Saved sponsor {record.wallet} ({record.amount} wei) for event {record.event_id}"

    # ── Ticket events ──────────────────────────────────────

    async def _on_ticket_issued(self, decoded: TicketIssued) -> str:
        ticket = await self._queries.get_ticket(decoded.token_id)
        record = TicketRecord(
            contract_address=self._queries.ticket_address,
            token_id=str(decoded.token_id),
            event_id=str(ticket.event_id),
            holder=ticket.holder,
            event_title=ticket.event_title,
            location=ticket.location,
            start_time=ticket.start_time,
            end_time=ticket.end_time,
            used=ticket.used,
            issued_at=ticket.issued_at,
        )
        await self._store.create_ticket(record)
        return f"Saved ticket {record.token_id} for {record.holder}"

    async def _on_ticket_used(self, decoded: TicketUsed) -> str:
        kind = decoded.kind.value
        if await self._store.has_successful_ingestion(decoded.log.tx_hash, kind):
            return f"Ticket {decoded.token_id}: duplicate delivery, skipped"
        contract = self._queries.ticket_address
        token_id = str(decoded.token_id)
        stored = await self._store.get_ticket(contract, token_id)
        if stored is None:
            raise RecordNotFound(f"Ticket {token_id} is not stored")
        if stored.used:
            return f"Ticket {token_id} already used (no-op)"
        await self._store.mark_ticket_used(contract, token_id)
        return f"Marked ticket {token_id} as used"
