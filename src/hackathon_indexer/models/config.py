"""Configuration models for the indexer."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NetworkProfile:
    """One deployable chain: endpoints plus the two tracked contracts."""

    name: str
    rpc_url: str
    ws_url: str = ""
    chain_id: int | None = None
    fallback_rpc_urls: list[str] = field(default_factory=list)
    registry_address: str = ""  # event registry contract
    ticket_address: str = ""  # NFT ticket contract

    def rpc_urls(self) -> list[str]:
        """Primary URL first, then static fallbacks, without duplicates."""
        urls: list[str] = []
        for url in [self.rpc_url, *self.fallback_rpc_urls]:
            if url and url not in urls:
                urls.append(url)
        return urls


def builtin_networks() -> dict[str, NetworkProfile]:
    """Chain profiles known out of the box. Overridable from the config file."""
    return {
        "monad-testnet": NetworkProfile(
            name="monad-testnet",
            rpc_url="https://testnet-rpc.monad.xyz",
            ws_url="wss://testnet-rpc.monad.xyz",
            chain_id=10143,
            registry_address="0x062F04385CC31a88c4A1996d07b747B914e09E27",
            ticket_address="0xF15742734183129cb6f42d2606851952a9b7A4AA",
        ),
        "mantle-sepolia": NetworkProfile(
            name="mantle-sepolia",
            rpc_url="https://rpc.sepolia.mantle.xyz",
            ws_url="wss://mantle-sepolia-rpc.publicnode.com",
            chain_id=5003,
            fallback_rpc_urls=[
                "https://rpc.ankr.com/mantle_sepolia",
                "https://mantle-sepolia-rpc.publicnode.com",
            ],
        ),
        "somnia-testnet": NetworkProfile(
            name="somnia-testnet",
            rpc_url="https://dream-rpc.somnia.network",
            chain_id=50312,
        ),
    }


@dataclass
class RestartPolicy:
    """Fixed-delay restart policy for the live subscription supervisor."""

    delay: float = 5.0  # seconds between attempts
    max_attempts: int | None = None  # None = retry until stopped


@dataclass
class IndexerConfig:
    """Complete indexer configuration."""

    # Indexer
    active_network: str = "monad-testnet"
    log_level: str = "info"
    start_block: int = 0  # first block scanned when no checkpoint exists
    batch_size: int = 1000  # max blocks per eth_getLogs request
    sync_interval: int = 30  # seconds between backfill passes in degraded mode
    heartbeat_interval: int = 30  # seconds

    # RPC
    call_timeout: float = 10.0  # seconds per contract/RPC call
    restart: RestartPolicy = field(default_factory=RestartPolicy)

    # Storage
    db_path: str = "~/.hackathon_indexer/index.db"

    # Networks
    networks: dict[str, NetworkProfile] = field(default_factory=builtin_networks)

    @property
    def network(self) -> NetworkProfile:
        try:
            return self.networks[self.active_network]
        except KeyError:
            known = ", ".join(sorted(self.networks)) or "none"
            raise ValueError(
                f"Unknown network {self.active_network!r} (known: {known})"
            ) from None
