"""ChainEndpoint protocol - the resolved query and streaming transports."""

from __future__ import annotations

from typing import Any, Protocol

from hackathon_indexer.interfaces.stream import LogStream
from hackathon_indexer.models.logs import ChainLog


class ChainEndpoint(Protocol):
    """A connected chain node, shared by every component that talks to the chain."""

    @property
    def web3(self) -> Any:
        """The AsyncWeb3 instance bound to the active query endpoint."""
        ...

    @property
    def degraded(self) -> bool:
        """True when no streaming transport is available."""
        ...

    async def connect(self) -> None:
        ...

    async def reconnect(self) -> None:
        """Re-select the query endpoint. Raises EndpointUnreachable."""
        ...

    async def open_stream(self) -> LogStream:
        """Raises StreamingUnsupported when degraded."""
        ...

    async def head_block(self) -> int:
        ...

    async def get_logs(
        self, from_block: int, to_block: int, addresses: list[str]
    ) -> list[ChainLog]:
        ...

    async def close(self) -> None:
        ...
