"""Read-only queries against the event registry and NFT ticket contracts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from web3 import Web3

from hackathon_indexer.errors import ContractCallError
from hackathon_indexer.interfaces.chain import ChainEndpoint
from hackathon_indexer.models.contract import (
    ContractEvent,
    ContractParticipant,
    ContractSponsor,
    ContractTicket,
)

log = logging.getLogger(__name__)


def _uint(name: str) -> dict:
    return {"internalType": "uint256", "name": name, "type": "uint256"}


def _field(kind: str, name: str) -> dict:
    return {"internalType": kind, "name": name, "type": kind}


REGISTRY_ABI: list[dict] = [
    {
        "inputs": [_uint("_eventId")],
        "name": "getEvent",
        "outputs": [
            {
                "components": [
                    _uint("id"),
                    _field("address", "organizer"),
                    _field("string", "title"),
                    _field("string", "description"),
                    _uint("startTime"),
                    _uint("endTime"),
                    _field("string", "location"),
                    _uint("maxParticipants"),
                    _uint("participantCount"),
                    _field("bool", "active"),
                    _uint("createdAt"),
                ],
                "internalType": "struct Hackathon.Event",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint("_eventId")],
        "name": "getParticipantCount",
        "outputs": [_uint("")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint(""), _uint("")],
        "name": "eventParticipants",
        "outputs": [
            _field("address", "wallet"),
            _field("string", "name"),
            _uint("registeredAt"),
            _field("bool", "checkedIn"),
            _uint("checkInTime"),
        ],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint("_eventId")],
        "name": "getSponsorCount",
        "outputs": [_uint("")],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [_uint(""), _uint("")],
        "name": "eventSponsors",
        "outputs": [
            _field("address", "wallet"),
            _field("string", "name"),
            _uint("amount"),
            _uint("sponsoredAt"),
        ],
        "stateMutability": "view",
        "type": "function",
    },
]

TICKET_ABI: list[dict] = [
    {
        "inputs": [_uint("_tokenId")],
        "name": "getTicket",
        "outputs": [
            {
                "components": [
                    _uint("tokenId"),
                    _uint("eventId"),
                    _field("address", "holder"),
                    _field("string", "eventTitle"),
                    _field("string", "location"),
                    _uint("startTime"),
                    _uint("endTime"),
                    _field("bool", "used"),
                    _uint("issuedAt"),
                ],
                "internalType": "struct NFTTicket.Ticket",
                "name": "",
                "type": "tuple",
            }
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


def _same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()


class ContractQueries:
    """Read-only calls against the registry and ticket contracts.

    Every call is bounded by ``call_timeout`` and raises ContractCallError on
    transport, revert or decode failure. There is no internal retry; the
    caller decides what a failed read costs.
    """

    def __init__(
        self,
        chain: ChainEndpoint,
        registry_address: str,
        ticket_address: str,
        call_timeout: float = 10.0,
    ) -> None:
        self._chain = chain
        self._registry_address = Web3.to_checksum_address(registry_address)
        self._ticket_address = Web3.to_checksum_address(ticket_address)
        self._call_timeout = call_timeout

    @property
    def registry_address(self) -> str:
        return self._registry_address

    @property
    def ticket_address(self) -> str:
        return self._ticket_address

    def _registry(self):
        return self._chain.web3.eth.contract(
            address=self._registry_address, abi=REGISTRY_ABI,
        )

    def _tickets(self):
        return self._chain.web3.eth.contract(
            address=self._ticket_address, abi=TICKET_ABI,
        )

    async def _call(self, fn, label: str) -> Any:
        try:
            return await asyncio.wait_for(fn.call(), timeout=self._call_timeout)
        except asyncio.TimeoutError as exc:
            raise ContractCallError(
                f"{label} timed out after {self._call_timeout}s"
            ) from exc
        except Exception as exc:
            raise ContractCallError(f"{label} failed: {exc}") from exc

    # ── Single-record reads ────────────────────────────────

    async def get_event_details(self, event_id: int) -> ContractEvent:
        label = f"getEvent({event_id})"
        raw = await self._call(self._registry().functions.getEvent(event_id), label)
        try:
            return ContractEvent.from_tuple(raw)
        except (TypeError, ValueError) as exc:
            raise ContractCallError(f"{label} returned undecodable payload: {exc}") from exc

    async def get_ticket(self, token_id: int) -> ContractTicket:
        label = f"getTicket({token_id})"
        raw = await self._call(self._tickets().functions.getTicket(token_id), label)
        try:
            return ContractTicket.from_tuple(raw)
        except (TypeError, ValueError) as exc:
            raise ContractCallError(f"{label} returned undecodable payload: {exc}") from exc

    # ── Count + index enumeration ──────────────────────────

    async def get_event_participants(self, event_id: int) -> list[ContractParticipant]:
        """All participants of an event. Indexes that fail are skipped."""
        registry = self._registry()
        count = await self._call(
            registry.functions.getParticipantCount(event_id),
            f"getParticipantCount({event_id})",
        )
        participants: list[ContractParticipant] = []
        for i in range(int(count)):
            label = f"eventParticipants({event_id}, {i})"
            try:
                raw = await self._call(registry.functions.eventParticipants(event_id, i), label)
                participants.append(ContractParticipant.from_tuple(raw))
            except (ContractCallError, TypeError, ValueError) as exc:
                log.warning("Skipping participant index %d of event %d: %s", i, event_id, exc)
        return participants

    async def get_event_sponsors(self, event_id: int) -> list[ContractSponsor]:
        """All sponsors of an event. Indexes that fail are skipped."""
        registry = self._registry()
        count = await self._call(
            registry.functions.getSponsorCount(event_id),
            f"getSponsorCount({event_id})",
        )
        sponsors: list[ContractSponsor] = []
        for i in range(int(count)):
            label = f"eventSponsors({event_id}, {i})"
            try:
                raw = await self._call(registry.functions.eventSponsors(event_id, i), label)
                sponsors.append(ContractSponsor.from_tuple(raw))
            except (ContractCallError, TypeError, ValueError) as exc:
                log.warning("Skipping sponsor index %d of event %d: %s", i, event_id, exc)
        return sponsors

    # ── Lookups by wallet ──────────────────────────────────
    # The registry has no single-record getter, so these scan the full list.

    async def find_participant(self, event_id: int, wallet: str) -> ContractParticipant | None:
        for participant in await self.get_event_participants(event_id):
            if _same_address(participant.wallet, wallet):
                return participant
        return None

    async def find_sponsor(self, event_id: int, wallet: str) -> ContractSponsor | None:
        """Most recent sponsorship by ``wallet`` (a wallet may sponsor repeatedly)."""
        match: ContractSponsor | None = None
        for sponsor in await self.get_event_sponsors(event_id):
            if _same_address(sponsor.wallet, wallet):
                match = sponsor
        return match
