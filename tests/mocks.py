"""Mock implementations of all external-facing components."""

from __future__ import annotations

import asyncio

from hackathon_indexer.errors import ContractCallError, StreamingUnsupported, SubscriptionError
from hackathon_indexer.models.contract import (
    ContractEvent,
    ContractParticipant,
    ContractSponsor,
    ContractTicket,
)
from hackathon_indexer.models.logs import ChainLog

from tests.factories import REGISTRY, TICKETS


class MockQueries:
    """Implements ContractReader protocol over in-memory contract state."""

    def __init__(self) -> None:
        self.events: dict[int, ContractEvent] = {}
        self.participants: dict[int, list[ContractParticipant]] = {}
        self.sponsors: dict[int, list[ContractSponsor]] = {}
        self.tickets: dict[int, ContractTicket] = {}
        self.failing: set[str] = set()  # method names that raise ContractCallError
        self.calls: list[tuple] = []

    @property
    def registry_address(self) -> str:
        return REGISTRY

    @property
    def ticket_address(self) -> str:
        return TICKETS

    def _check(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failing:
            raise ContractCallError(f"mock {name} failure")

    async def get_event_details(self, event_id: int) -> ContractEvent:
        self._check("get_event_details", event_id)
        if event_id not in self.events:
            raise ContractCallError(f"getEvent({event_id}) reverted")
        return self.events[event_id]

    async def get_event_participants(self, event_id: int) -> list[ContractParticipant]:
        self._check("get_event_participants", event_id)
        return list(self.participants.get(event_id, []))

    async def get_event_sponsors(self, event_id: int) -> list[ContractSponsor]:
        self._check("get_event_sponsors", event_id)
        return list(self.sponsors.get(event_id, []))

    async def get_ticket(self, token_id: int) -> ContractTicket:
        self._check("get_ticket", token_id)
        if token_id not in self.tickets:
            raise ContractCallError(f"getTicket({token_id}) reverted")
        return self.tickets[token_id]

    async def find_participant(self, event_id: int, wallet: str) -> ContractParticipant | None:
        for p in await self.get_event_participants(event_id):
            if p.wallet.lower() == wallet.lower():
                return p
        return None

    async def find_sponsor(self, event_id: int, wallet: str) -> ContractSponsor | None:
        match = None
        for s in await self.get_event_sponsors(event_id):
            if s.wallet.lower() == wallet.lower():
                match = s
        return match


class MockStream:
    """Implements LogStream protocol. Feed logs or exceptions with push()."""

    def __init__(self) -> None:
        self.queue: asyncio.Queue = asyncio.Queue()
        self.subscribed: list[str] | None = None
        self.closed = False
        self.fail_subscribe = False

    def push(self, *items: ChainLog | Exception) -> None:
        for item in items:
            self.queue.put_nowait(item)

    async def subscribe(self, addresses: list[str]) -> str:
        if self.fail_subscribe:
            raise SubscriptionError("mock subscribe rejected")
        self.subscribed = list(addresses)
        return "0xsub"

    async def receive(self) -> ChainLog:
        item = await self.queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class MockChain:
    """Implements ChainEndpoint protocol with a scripted head and log history."""

    def __init__(self, head: int = 0, degraded: bool = False) -> None:
        self.head = head
        self.degraded = degraded
        self.logs: list[ChainLog] = []
        self.streams: list[MockStream] = []
        self.get_logs_errors: list[Exception] = []  # raised in order, one per call
        self.get_logs_calls: list[tuple[int, int]] = []
        self.open_stream_calls = 0
        self.reconnects = 0
        self.connected = False
        self.closed = False

    @property
    def web3(self):
        raise AssertionError("MockChain has no web3 instance")

    async def connect(self) -> None:
        self.connected = True

    async def reconnect(self) -> None:
        self.reconnects += 1

    async def open_stream(self) -> MockStream:
        self.open_stream_calls += 1
        if self.degraded:
            raise StreamingUnsupported("mock chain is degraded")
        if not self.streams:
            raise SubscriptionError("mock reconnect failed")
        return self.streams.pop(0)

    async def head_block(self) -> int:
        return self.head

    async def get_logs(
        self, from_block: int, to_block: int, addresses: list[str]
    ) -> list[ChainLog]:
        self.get_logs_calls.append((from_block, to_block))
        if self.get_logs_errors:
            raise self.get_logs_errors.pop(0)
        wanted = {a.lower() for a in addresses}
        return [
            entry for entry in self.logs
            if from_block <= entry.block_number <= to_block
            and entry.address.lower() in wanted
        ]

    async def close(self) -> None:
        self.closed = True
