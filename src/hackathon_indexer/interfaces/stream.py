"""LogStream protocol - a live log subscription session over a streaming transport."""

from __future__ import annotations

from typing import Protocol

from hackathon_indexer.models.logs import ChainLog


class LogStream(Protocol):
    """One streaming session. Not reusable once closed."""

    async def subscribe(self, addresses: list[str]) -> str:
        """Subscribe to logs emitted by ``addresses``. Returns the subscription id."""
        ...

    async def receive(self) -> ChainLog:
        """Wait for the next log. Raises SubscriptionError on transport failure."""
        ...

    async def close(self) -> None:
        ...
