"""Raw chain log model, normalized from JSON-RPC or web3 payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from hexbytes import HexBytes
from web3 import Web3


def to_hex(value: bytes) -> str:
    """0x-prefixed lowercase hex, independent of the hexbytes version."""
    return "0x" + bytes(value).hex()


def _parse_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


@dataclass(frozen=True)
class ChainLog:
    """A single contract log as delivered by the node."""

    address: str  # checksum address of the emitting contract
    topics: tuple[HexBytes, ...]
    data: HexBytes
    block_number: int
    tx_hash: str  # 0x-prefixed hex
    log_index: int = 0
    removed: bool = False

    @property
    def topic0(self) -> HexBytes | None:
        return self.topics[0] if self.topics else None

    @classmethod
    def from_rpc(cls, raw: Mapping[str, Any]) -> ChainLog:
        """Build from an ``eth_getLogs`` entry or ``eth_subscription`` result.

        Accepts both hex-string payloads (raw websocket JSON) and the
        HexBytes/int payloads web3 returns.
        """
        topics = tuple(HexBytes(t) for t in raw.get("topics") or [])
        tx_hash = raw.get("transactionHash") or b""
        return cls(
            address=Web3.to_checksum_address(raw["address"]),
            topics=topics,
            data=HexBytes(raw.get("data") or b""),
            block_number=_parse_int(raw.get("blockNumber", 0)),
            tx_hash=to_hex(HexBytes(tx_hash)),
            log_index=_parse_int(raw.get("logIndex", 0)),
            removed=bool(raw.get("removed", False)),
        )

    def sort_key(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)
