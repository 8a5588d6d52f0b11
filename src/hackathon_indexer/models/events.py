"""Decoded contract log variants, one per known event kind."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from hackathon_indexer.models.logs import ChainLog


class EventKind(str, Enum):
    """Audit-trail tag for each known event declaration."""

    EVENT_CREATED = "event_created"
    PARTICIPANT_REGISTERED = "participant_registered"
    PARTICIPANT_CHECKED_IN = "participant_checked_in"
    SPONSOR_ADDED = "sponsor_added"
    TICKET_ISSUED = "ticket_issued"
    TICKET_USED = "ticket_used"


@dataclass(frozen=True)
class EventCreated:
    """Registry emitted a new event (topic1 = event id)."""

    event_id: int
    log: ChainLog
    kind = EventKind.EVENT_CREATED


@dataclass(frozen=True)
class ParticipantRegistered:
    """A wallet registered for an event (topic1 = event id, topic2 = wallet)."""

    event_id: int
    wallet: str
    log: ChainLog
    kind = EventKind.PARTICIPANT_REGISTERED


@dataclass(frozen=True)
class ParticipantCheckedIn:
    """A registered wallet checked in (topic1 = event id, topic2 = wallet)."""

    event_id: int
    wallet: str
    log: ChainLog
    kind = EventKind.PARTICIPANT_CHECKED_IN


@dataclass(frozen=True)
class SponsorAdded:
    """A sponsor funded an event (topic1 = event id, topic2 = sponsor)."""

    event_id: int
    sponsor: str
    log: ChainLog
    kind = EventKind.SPONSOR_ADDED


@dataclass(frozen=True)
class TicketIssued:
    """Ticket contract minted a ticket (topic1 = token id, topic2 = holder)."""

    token_id: int
    holder: str
    log: ChainLog
    kind = EventKind.TICKET_ISSUED


@dataclass(frozen=True)
class TicketUsed:
    """A ticket was redeemed (topic1 = token id)."""

    token_id: int
    log: ChainLog
    kind = EventKind.TICKET_USED


@dataclass(frozen=True)
class UnknownLog:
    """Log whose first topic matches none of the known declarations."""

    topic0: str | None
    log: ChainLog
