"""Error taxonomy for the ingestion pipeline."""

from __future__ import annotations


class IndexerError(Exception):
    """Base class for all pipeline errors."""


class EndpointUnreachable(IndexerError):
    """Every candidate RPC endpoint failed the chain-identity query."""

    def __init__(self, attempts: list[tuple[str, str]]) -> None:
        self.attempts = attempts
        detail = "; ".join(f"{url}: {reason}" for url, reason in attempts)
        super().__init__(f"No reachable RPC endpoint ({detail or 'no candidates'})")


NoReachableEndpoint = EndpointUnreachable


class StreamingUnsupported(IndexerError):
    """The streaming transport is unavailable (degraded mode)."""


class SubscriptionError(IndexerError):
    """A live subscription session failed at the transport level."""


class ContractCallError(IndexerError):
    """A read-only contract call failed or returned an undecodable payload."""


class RecordNotFound(IndexerError):
    """A reconciliation lookup could not locate the expected record."""


class MalformedLogError(IndexerError):
    """A log carries a known signature but too few topics."""

    def __init__(self, kind: str, expected: int, actual: int) -> None:
        self.kind = kind
        self.expected = expected
        self.actual = actual
        super().__init__(f"{kind} log has {actual} topics, expected {expected}")


class PersistenceError(IndexerError):
    """A store write failed."""


class DuplicateRecordError(PersistenceError):
    """A create hit an existing unique key."""
