"""ContractReader protocol - read-back of canonical contract state."""

from __future__ import annotations

from typing import Protocol

from hackathon_indexer.models.contract import (
    ContractEvent,
    ContractParticipant,
    ContractSponsor,
    ContractTicket,
)


class ContractReader(Protocol):
    """Read-only access to the registry and ticket contracts."""

    @property
    def registry_address(self) -> str:
        ...

    @property
    def ticket_address(self) -> str:
        ...

    async def get_event_details(self, event_id: int) -> ContractEvent:
        ...

    async def get_event_participants(self, event_id: int) -> list[ContractParticipant]:
        ...

    async def get_event_sponsors(self, event_id: int) -> list[ContractSponsor]:
        ...

    async def get_ticket(self, token_id: int) -> ContractTicket:
        ...

    async def find_participant(self, event_id: int, wallet: str) -> ContractParticipant | None:
        ...

    async def find_sponsor(self, event_id: int, wallet: str) -> ContractSponsor | None:
        ...
