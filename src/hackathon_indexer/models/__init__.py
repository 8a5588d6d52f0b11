"""Data models for the hackathon indexer."""

from hackathon_indexer.models.logs import ChainLog
from hackathon_indexer.models.events import (
    EventKind,
    EventCreated,
    ParticipantRegistered,
    ParticipantCheckedIn,
    SponsorAdded,
    TicketIssued,
    TicketUsed,
    UnknownLog,
)
from hackathon_indexer.models.contract import (
    ContractEvent,
    ContractParticipant,
    ContractSponsor,
    ContractTicket,
)
from hackathon_indexer.models.records import (
    EventRecord,
    ParticipantRecord,
    SponsorRecord,
    TicketRecord,
    IngestionLogEntry,
    IngestionStats,
    ReconcileResult,
    BackfillResult,
)
from hackathon_indexer.models.config import IndexerConfig, NetworkProfile, RestartPolicy

__all__ = [
    "ChainLog",
    "EventKind", "EventCreated", "ParticipantRegistered", "ParticipantCheckedIn",
    "SponsorAdded", "TicketIssued", "TicketUsed", "UnknownLog",
    "ContractEvent", "ContractParticipant", "ContractSponsor", "ContractTicket",
    "EventRecord", "ParticipantRecord", "SponsorRecord", "TicketRecord",
    "IngestionLogEntry", "IngestionStats", "ReconcileResult", "BackfillResult",
    "IndexerConfig", "NetworkProfile", "RestartPolicy",
]
