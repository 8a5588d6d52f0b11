"""SQLite implementation of the IndexStore protocol."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from hackathon_indexer.errors import DuplicateRecordError, PersistenceError
from hackathon_indexer.models.records import (
    EventRecord,
    IngestionLogEntry,
    IngestionStats,
    ParticipantRecord,
    SponsorRecord,
    TicketRecord,
)

SCHEMA = """
-- Events from the registry contract
CREATE TABLE IF NOT EXISTS events (
    contract_address TEXT NOT NULL,
    event_id TEXT NOT NULL,
    organizer TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    start_time INTEGER NOT NULL DEFAULT 0,
    end_time INTEGER NOT NULL DEFAULT 0,
    location TEXT NOT NULL DEFAULT '',
    max_participants INTEGER NOT NULL DEFAULT 0,
    participant_count INTEGER NOT NULL DEFAULT 0,
    active INTEGER NOT NULL DEFAULT 1,
    created_at INTEGER NOT NULL DEFAULT 0,
    synced_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (contract_address, event_id)
);
CREATE INDEX IF NOT EXISTS idx_events_organizer ON events(organizer COLLATE NOCASE);

-- Registered participants
CREATE TABLE IF NOT EXISTS participants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    contract_address TEXT NOT NULL,
    event_id TEXT NOT NULL,
    wallet TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    registered_at INTEGER NOT NULL DEFAULT 0,
    checked_in INTEGER NOT NULL DEFAULT 0,
    check_in_time INTEGER NOT NULL DEFAULT 0
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_participants_key
    ON participants(contract_address, event_id, wallet);

-- Sponsorships (immutable)
CREATE TABLE IF NOT EXISTS sponsors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    contract_address TEXT NOT NULL,
    event_id TEXT NOT NULL,
    wallet TEXT NOT NULL,
    name TEXT NOT NULL DEFAULT '',
    amount TEXT NOT NULL DEFAULT '0',
    sponsored_at INTEGER NOT NULL DEFAULT 0
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_sponsors_key
    ON sponsors(contract_address, event_id, wallet, sponsored_at);

-- NFT tickets, event fields captured at issuance
CREATE TABLE IF NOT EXISTS nft_tickets (
    contract_address TEXT NOT NULL,
    token_id TEXT NOT NULL,
    event_id TEXT NOT NULL,
    holder TEXT NOT NULL,
    event_title TEXT NOT NULL DEFAULT '',
    location TEXT NOT NULL DEFAULT '',
    start_time INTEGER NOT NULL DEFAULT 0,
    end_time INTEGER NOT NULL DEFAULT 0,
    used INTEGER NOT NULL DEFAULT 0,
    issued_at INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (contract_address, token_id)
);
CREATE INDEX IF NOT EXISTS idx_tickets_holder ON nft_tickets(holder COLLATE NOCASE);
CREATE INDEX IF NOT EXISTS idx_tickets_event ON nft_tickets(event_id);

-- Ingestion audit trail (append-only)
CREATE TABLE IF NOT EXISTS ingestion_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    kind TEXT NOT NULL,
    block_number INTEGER NOT NULL,
    tx_hash TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL,
    error TEXT,
    message TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_ingestion_kind_status ON ingestion_log(kind, status);
CREATE INDEX IF NOT EXISTS idx_ingestion_tx ON ingestion_log(tx_hash);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteIndexStore:
    """SQLite-backed implementation of the IndexStore protocol.

    Unique-key conflicts on create surface as DuplicateRecordError; any other
    driver failure surfaces as PersistenceError.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db is not None:
            return
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    async def _write(self, sql: str, params: tuple) -> int:
        """Execute one statement and commit. Returns the affected row count."""
        try:
            cursor = await self.db.execute(sql, params)
            await self.db.commit()
        except aiosqlite.IntegrityError as exc:
            await self.db.rollback()
            raise DuplicateRecordError(str(exc)) from exc
        except aiosqlite.Error as exc:
            await self.db.rollback()
            raise PersistenceError(str(exc)) from exc
        except OverflowError as exc:
            # uint256 values above the SQLite INTEGER range
            await self.db.rollback()
            raise PersistenceError(f"Value out of range: {exc}") from exc
        return cursor.rowcount

    # ── Events ─────────────────────────────────────────────

    async def create_event(self, record: EventRecord) -> None:
        await self._write(
            "INSERT INTO events"
            " (contract_address, event_id, organizer, title, description,"
            "  start_time, end_time, location, max_participants,"
            "  participant_count, active, created_at, synced_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.contract_address, record.event_id, record.organizer,
                record.title, record.description, record.start_time,
                record.end_time, record.location, record.max_participants,
                record.participant_count, int(record.active), record.created_at,
                record.synced_at or _now(),
            ),
        )

    async def update_event(self, record: EventRecord) -> None:
        await self._write(
            "UPDATE events SET organizer=?, title=?, description=?, start_time=?,"
            " end_time=?, location=?, max_participants=?, participant_count=?,"
            " active=?, created_at=?, synced_at=?"
            " WHERE contract_address=? AND event_id=?",
            (
                record.organizer, record.title, record.description,
                record.start_time, record.end_time, record.location,
                record.max_participants, record.participant_count,
                int(record.active), record.created_at, record.synced_at or _now(),
                record.contract_address, record.event_id,
            ),
        )

    async def get_event(self, contract_address: str, event_id: str) -> EventRecord | None:
        async with self.db.execute(
            "SELECT * FROM events WHERE contract_address=? AND event_id=?",
            (contract_address, event_id),
        ) as cur:
            row = await cur.fetchone()
            return _row_to_event(row) if row else None

    async def find_event(self, event_id: str) -> EventRecord | None:
        """Lookup by id alone, for readers that don't know the contract."""
        async with self.db.execute(
            "SELECT * FROM events WHERE event_id=? ORDER BY synced_at DESC LIMIT 1",
            (event_id,),
        ) as cur:
            row = await cur.fetchone()
            return _row_to_event(row) if row else None

    async def list_events(self) -> list[EventRecord]:
        async with self.db.execute(
            "SELECT * FROM events ORDER BY created_at DESC, CAST(event_id AS INTEGER) DESC"
        ) as cur:
            return [_row_to_event(row) async for row in cur]

    async def get_events_by_organizer(self, organizer: str) -> list[EventRecord]:
        async with self.db.execute(
            "SELECT * FROM events WHERE lower(organizer)=lower(?) ORDER BY created_at DESC",
            (organizer,),
        ) as cur:
            return [_row_to_event(row) async for row in cur]

    async def set_participant_count(
        self, contract_address: str, event_id: str, count: int
    ) -> bool:
        changed = await self._write(
            "UPDATE events SET participant_count=?, synced_at=?"
            " WHERE contract_address=? AND event_id=?",
            (count, _now(), contract_address, event_id),
        )
        return changed > 0

    # ── Participants ───────────────────────────────────────

    async def create_participant(self, record: ParticipantRecord) -> None:
        await self._write(
            "INSERT INTO participants"
            " (contract_address, event_id, wallet, name, registered_at,"
            "  checked_in, check_in_time)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                record.contract_address, record.event_id, record.wallet,
                record.name, record.registered_at, int(record.checked_in),
                record.check_in_time,
            ),
        )

    async def update_participant(self, record: ParticipantRecord) -> None:
        await self._write(
            "UPDATE participants SET name=?, registered_at=?, checked_in=?, check_in_time=?"
            " WHERE contract_address=? AND event_id=? AND wallet=?",
            (
                record.name, record.registered_at, int(record.checked_in),
                record.check_in_time, record.contract_address, record.event_id,
                record.wallet,
            ),
        )

    async def get_participant(
        self, contract_address: str, event_id: str, wallet: str
    ) -> ParticipantRecord | None:
        async with self.db.execute(
            "SELECT * FROM participants"
            " WHERE contract_address=? AND event_id=? AND lower(wallet)=lower(?)",
            (contract_address, event_id, wallet),
        ) as cur:
            row = await cur.fetchone()
            return _row_to_participant(row) if row else None

    async def get_participants(self, event_id: str) -> list[ParticipantRecord]:
        async with self.db.execute(
            "SELECT * FROM participants WHERE event_id=? ORDER BY registered_at, id",
            (event_id,),
        ) as cur:
            return [_row_to_participant(row) async for row in cur]

    async def count_participants(self, contract_address: str, event_id: str) -> int:
        async with self.db.execute(
            "SELECT COUNT(*) FROM participants WHERE contract_address=? AND event_id=?",
            (contract_address, event_id),
        ) as cur:
            row = await cur.fetchone()
            return row[0]

    # ── Sponsors ───────────────────────────────────────────

    async def create_sponsor(self, record: SponsorRecord) -> None:
        await self._write(
            "INSERT INTO sponsors"
            " (contract_address, event_id, wallet, name, amount, sponsored_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (
                record.contract_address, record.event_id, record.wallet,
                record.name, record.amount, record.sponsored_at,
            ),
        )

    async def get_sponsors(self, event_id: str) -> list[SponsorRecord]:
        async with self.db.execute(
            "SELECT * FROM sponsors WHERE event_id=? ORDER BY sponsored_at, id",
            (event_id,),
        ) as cur:
            return [
                SponsorRecord(
                    contract_address=row["contract_address"],
                    event_id=row["event_id"],
                    wallet=row["wallet"],
                    name=row["name"],
                    amount=row["amount"],
                    sponsored_at=row["sponsored_at"],
                )
                async for row in cur
            ]

    # ── Tickets ────────────────────────────────────────────

    async def create_ticket(self, record: TicketRecord) -> None:
        await self._write(
            "INSERT INTO nft_tickets"
            " (contract_address, token_id, event_id, holder, event_title,"
            "  location, start_time, end_time, used, issued_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.contract_address, record.token_id, record.event_id,
                record.holder, record.event_title, record.location,
                record.start_time, record.end_time, int(record.used),
                record.issued_at,
            ),
        )

    async def get_ticket(self, contract_address: str, token_id: str) -> TicketRecord | None:
        async with self.db.execute(
            "SELECT * FROM nft_tickets WHERE contract_address=? AND token_id=?",
            (contract_address, token_id),
        ) as cur:
            row = await cur.fetchone()
            return _row_to_ticket(row) if row else None

    async def get_tickets_by_event(self, event_id: str) -> list[TicketRecord]:
        async with self.db.execute(
            "SELECT * FROM nft_tickets WHERE event_id=? ORDER BY issued_at, token_id",
            (event_id,),
        ) as cur:
            return [_row_to_ticket(row) async for row in cur]

    async def get_tickets_by_holder(self, holder: str) -> list[TicketRecord]:
        async with self.db.execute(
            "SELECT * FROM nft_tickets WHERE lower(holder)=lower(?) ORDER BY issued_at DESC",
            (holder,),
        ) as cur:
            return [_row_to_ticket(row) async for row in cur]

    async def mark_ticket_used(self, contract_address: str, token_id: str) -> None:
        await self._write(
            "UPDATE nft_tickets SET used=1 WHERE contract_address=? AND token_id=?",
            (contract_address, token_id),
        )

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
        await self._write(
            "INSERT INTO ingestion_log"
            " (kind, block_number, tx_hash, status, error, message, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?, ?)",
            (kind, block_number, tx_hash, status, error, message, _now()),
        )

    async def get_last_synced_block(self, kind: str) -> int | None:
        async with self.db.execute(
            "SELECT MAX(block_number) AS b FROM ingestion_log WHERE kind=? AND status='success'",
            (kind,),
        ) as cur:
            row = await cur.fetchone()
            return row["b"] if row else None

    async def has_successful_ingestion(self, tx_hash: str, kind: str) -> bool:
        async with self.db.execute(
            "SELECT 1 FROM ingestion_log WHERE tx_hash=? AND kind=? AND status='success' LIMIT 1",
            (tx_hash, kind),
        ) as cur:
            return await cur.fetchone() is not None

    async def get_ingestion_log(
        self, limit: int = 50, status: str | None = None
    ) -> list[IngestionLogEntry]:
        if status:
            sql = "SELECT * FROM ingestion_log WHERE status=? ORDER BY id DESC LIMIT ?"
            params: tuple = (status, limit)
        else:
            sql = "SELECT * FROM ingestion_log ORDER BY id DESC LIMIT ?"
            params = (limit,)
        async with self.db.execute(sql, params) as cur:
            return [
                IngestionLogEntry(
                    id=row["id"],
                    kind=row["kind"],
                    block_number=row["block_number"],
                    tx_hash=row["tx_hash"],
                    status=row["status"],
                    error=row["error"],
                    message=row["message"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]

    async def get_stats(self) -> IngestionStats:
        stats = IngestionStats(
            events=await self._count("SELECT COUNT(*) AS c FROM events"),
            participants=await self._count("SELECT COUNT(*) AS c FROM participants"),
            sponsors=await self._count("SELECT COUNT(*) AS c FROM sponsors"),
            tickets=await self._count("SELECT COUNT(*) AS c FROM nft_tickets"),
        )
        async with self.db.execute(
            "SELECT status, COUNT(*) AS c FROM ingestion_log GROUP BY status"
        ) as cur:
            async for row in cur:
                if row["status"] == "received":
                    stats.received = row["c"]
                elif row["status"] == "success":
                    stats.succeeded = row["c"]
                elif row["status"] == "failed":
                    stats.failed = row["c"]
        stats.last_synced_block = await self.get_last_synced_block("event")
        return stats

    async def _count(self, sql: str) -> int:
        async with self.db.execute(sql) as cur:
            row = await cur.fetchone()
            return row["c"] if row else 0


# ── Row converters ─────────────────────────────────────────


def _row_to_event(row: aiosqlite.Row) -> EventRecord:
    return EventRecord(
        contract_address=row["contract_address"],
        event_id=row["event_id"],
        organizer=row["organizer"],
        title=row["title"],
        description=row["description"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        location=row["location"],
        max_participants=row["max_participants"],
        participant_count=row["participant_count"],
        active=bool(row["active"]),
        created_at=row["created_at"],
        synced_at=row["synced_at"],
    )


def _row_to_participant(row: aiosqlite.Row) -> ParticipantRecord:
    return ParticipantRecord(
        contract_address=row["contract_address"],
        event_id=row["event_id"],
        wallet=row["wallet"],
        name=row["name"],
        registered_at=row["registered_at"],
        checked_in=bool(row["checked_in"]),
        check_in_time=row["check_in_time"],
    )


def _row_to_ticket(row: aiosqlite.Row) -> TicketRecord:
    return TicketRecord(
        contract_address=row["contract_address"],
        token_id=row["token_id"],
        event_id=row["event_id"],
        holder=row["holder"],
        event_title=row["event_title"],
        location=row["location"],
        start_time=row["start_time"],
        end_time=row["end_time"],
        used=bool(row["used"]),
        issued_at=row["issued_at"],
    )
