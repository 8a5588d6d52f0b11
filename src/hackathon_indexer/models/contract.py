"""Canonical contract-state records returned by read-back calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from web3 import Web3


@dataclass
class ContractEvent:
    """Mirror of the registry's Event struct."""

    event_id: int
    organizer: str
    title: str
    description: str
    start_time: int
    end_time: int
    location: str
    max_participants: int
    participant_count: int
    active: bool
    created_at: int

    @classmethod
    def from_tuple(cls, raw: Sequence[Any]) -> ContractEvent:
        (event_id, organizer, title, description, start, end, location,
         max_participants, participant_count, active, created_at) = raw
        return cls(
            event_id=int(event_id),
            organizer=Web3.to_checksum_address(organizer),
            title=str(title),
            description=str(description),
            start_time=int(start),
            end_time=int(end),
            location=str(location),
            max_participants=int(max_participants),
            participant_count=int(participant_count),
            active=bool(active),
            created_at=int(created_at),
        )


@dataclass
class ContractParticipant:
    wallet: str
    name: str
    registered_at: int
    checked_in: bool
    check_in_time: int

    @classmethod
    def from_tuple(cls, raw: Sequence[Any]) -> ContractParticipant:
        wallet, name, registered_at, checked_in, check_in_time = raw
        return cls(
            wallet=Web3.to_checksum_address(wallet),
            name=str(name),
            registered_at=int(registered_at),
            checked_in=bool(checked_in),
            check_in_time=int(check_in_time),
        )


@dataclass
class ContractSponsor:
    wallet: str
    name: str
    amount: int  # wei; may exceed 64 bits
    sponsored_at: int

    @classmethod
    def from_tuple(cls, raw: Sequence[Any]) -> ContractSponsor:
        wallet, name, amount, sponsored_at = raw
        return cls(
            wallet=Web3.to_checksum_address(wallet),
            name=str(name),
            amount=int(amount),
            sponsored_at=int(sponsored_at),
        )


@dataclass
class ContractTicket:
    """Mirror of the ticket contract's Ticket struct."""

    token_id: int
    event_id: int
    holder: str
    event_title: str
    location: str
    start_time: int
    end_time: int
    used: bool
    issued_at: int

    @classmethod
    def from_tuple(cls, raw: Sequence[Any]) -> ContractTicket:
        (token_id, event_id, holder, event_title, location, start, end,
         used, issued_at) = raw
        return cls(
            token_id=int(token_id),
            event_id=int(event_id),
            holder=Web3.to_checksum_address(holder),
            event_title=str(event_title),
            location=str(location),
            start_time=int(start),
            end_time=int(end),
            used=bool(used),
            issued_at=int(issued_at),
        )
