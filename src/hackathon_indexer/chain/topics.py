"""Topic-signature table and log decoding for the six tracked declarations."""

from __future__ import annotations

from typing import Union

from hexbytes import HexBytes
from web3 import Web3

from hackathon_indexer.errors import MalformedLogError
from hackathon_indexer.models.events import (
    EventCreated,
    EventKind,
    ParticipantCheckedIn,
    ParticipantRegistered,
    SponsorAdded,
    TicketIssued,
    TicketUsed,
    UnknownLog,
)
from hackathon_indexer.models.logs import ChainLog, to_hex

DecodedLog = Union[
    EventCreated,
    ParticipantRegistered,
    ParticipantCheckedIn,
    SponsorAdded,
    TicketIssued,
    TicketUsed,
]

# Canonical declarations. Must match the contracts exactly for topic0 to match.
EVENT_SIGNATURES: dict[EventKind, str] = {
    EventKind.EVENT_CREATED: "EventCreated(uint256,address,string)",
    EventKind.PARTICIPANT_REGISTERED: "ParticipantRegistered(uint256,address)",
    EventKind.PARTICIPANT_CHECKED_IN: "ParticipantCheckedIn(uint256,address)",
    EventKind.SPONSOR_ADDED: "SponsorAdded(uint256,address,uint256)",
    EventKind.TICKET_ISSUED: "TicketIssued(uint256,address,uint256)",
    EventKind.TICKET_USED: "TicketUsed(uint256)",
}

# Topics required per kind, signature topic included.
REQUIRED_TOPICS: dict[EventKind, int] = {
    EventKind.EVENT_CREATED: 2,
    EventKind.PARTICIPANT_REGISTERED: 3,
    EventKind.PARTICIPANT_CHECKED_IN: 3,
    EventKind.SPONSOR_ADDED: 3,
    EventKind.TICKET_ISSUED: 3,
    EventKind.TICKET_USED: 2,
}


def signature_topic(signature: str) -> HexBytes:
    """keccak256 of a canonical event declaration."""
    return HexBytes(Web3.keccak(text=signature))


TOPIC_TO_KIND: dict[bytes, EventKind] = {
    bytes(signature_topic(sig)): kind for kind, sig in EVENT_SIGNATURES.items()
}


def topic_for(kind: EventKind) -> HexBytes:
    return signature_topic(EVENT_SIGNATURES[kind])


def classify(chain_log: ChainLog) -> EventKind | None:
    """Map topic0 to a known kind, or None for unknown/empty topics."""
    topic0 = chain_log.topic0
    if topic0 is None:
        return None
    return TOPIC_TO_KIND.get(bytes(topic0))


def topic_to_int(topic: bytes) -> int:
    return int.from_bytes(bytes(topic), "big")


def topic_to_address(topic: bytes) -> str:
    """Indexed addresses are left-padded to 32 bytes."""
    return Web3.to_checksum_address(bytes(topic)[-20:])


def decode_log(chain_log: ChainLog) -> DecodedLog | UnknownLog:
    """Decode a raw log into its tagged variant.

    Raises MalformedLogError when a known signature carries too few topics.
    """
    kind = classify(chain_log)
    if kind is None:
        topic0 = chain_log.topic0
        return UnknownLog(
            topic0=to_hex(topic0) if topic0 is not None else None,
            log=chain_log,
        )

    topics = chain_log.topics
    required = REQUIRED_TOPICS[kind]
    if len(topics) < required:
        raise MalformedLogError(kind.value, required, len(topics))

    if kind is EventKind.EVENT_CREATED:
        return EventCreated(event_id=topic_to_int(topics[1]), log=chain_log)
    if kind is EventKind.PARTICIPANT_REGISTERED:
        return ParticipantRegistered(
            event_id=topic_to_int(topics[1]),
            wallet=topic_to_address(topics[2]),
            log=chain_log,
        )
    if kind is EventKind.PARTICIPANT_CHECKED_IN:
        return ParticipantCheckedIn(
            event_id=topic_to_int(topics[1]),
            wallet=topic_to_address(topics[2]),
            log=chain_log,
        )
    if kind is EventKind.SPONSOR_ADDED:
        return SponsorAdded(
            event_id=topic_to_int(topics[1]),
            sponsor=topic_to_address(topics[2]),
            log=chain_log,
        )
    if kind is EventKind.TICKET_ISSUED:
        return TicketIssued(
            token_id=topic_to_int(topics[1]),
            holder=topic_to_address(topics[2]),
            log=chain_log,
        )
    return TicketUsed(token_id=topic_to_int(topics[1]), log=chain_log)
