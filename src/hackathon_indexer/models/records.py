"""Stored record types and pipeline operation results."""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class EventRecord:
    """An event as persisted in the store, keyed by (contract, event id)."""

    contract_address: str
    event_id: str
    organizer: str
    title: str
    description: str = ""
    start_time: int = 0
    end_time: int = 0
    location: str = ""
    max_participants: int = 0
    participant_count: int = 0
    active: bool = True
    created_at: int = 0  # on-chain unix seconds
    synced_at: str = ""  # ISO 8601

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ParticipantRecord:
    """Keyed by (contract, event id, wallet)."""

    contract_address: str
    event_id: str
    wallet: str
    name: str = ""
    registered_at: int = 0
    checked_in: bool = False
    check_in_time: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SponsorRecord:
    contract_address: str
    event_id: str
    wallet: str
    name: str = ""
    amount: str = "0"  # wei, decimal string
    sponsored_at: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class TicketRecord:
    """Keyed by (ticket contract, token id). Event fields are captured at issuance."""

    contract_address: str
    token_id: str
    event_id: str
    holder: str
    event_title: str = ""
    location: str = ""
    start_time: int = 0
    end_time: int = 0
    used: bool = False
    issued_at: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class IngestionLogEntry:
    """A single audit-trail row. Append-only."""

    id: int
    kind: str
    block_number: int
    tx_hash: str
    status: str  # "received", "success", "failed"
    error: str | None = None
    message: str | None = None
    created_at: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class IngestionStats:
    """Entity counts plus audit-trail health."""

    events: int = 0
    participants: int = 0
    sponsors: int = 0
    tickets: int = 0
    received: int = 0
    succeeded: int = 0
    failed: int = 0
    last_synced_block: int | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ReconcileResult:
    """Outcome of one handler invocation."""

    kind: str
    success: bool
    message: str = ""
    error: str | None = None


@dataclass
class BackfillResult:
    """Outcome of one backfill pass."""

    from_block: int
    to_block: int
    batches: int = 0
    logs: int = 0
    completed: bool = True
    skipped: bool = False
    error: str | None = None
    last_checkpoint: int | None = None
