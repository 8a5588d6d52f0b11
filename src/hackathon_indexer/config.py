"""Configuration loading: TOML file + environment variables + built-in network profiles."""

from __future__ import annotations

import os
from pathlib import Path

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from hackathon_indexer.models.config import IndexerConfig, NetworkProfile, RestartPolicy


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "HACKATHON_INDEXER_",
    network: str | None = None,
) -> IndexerConfig:
    """Load indexer configuration from TOML file and env vars.

    Priority (highest wins):
        1. ``network`` argument (the CLI's --network)
        2. Environment variables (HACKATHON_INDEXER_NETWORK, etc.)
        3. TOML config file
        4. Defaults from IndexerConfig and the built-in network profiles

    Endpoint and address overrides from the environment apply to whichever
    network ends up active.
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = IndexerConfig()

    # ── Indexer section ────────────────────────────────────
    indexer = raw.get("indexer", {})
    if v := indexer.get("active_network"):
        cfg.active_network = str(v)
    if v := indexer.get("log_level"):
        cfg.log_level = str(v)
    if (v := indexer.get("start_block")) is not None:
        cfg.start_block = int(v)
    if v := indexer.get("batch_size"):
        cfg.batch_size = int(v)
    if v := indexer.get("sync_interval"):
        cfg.sync_interval = int(v)
    if v := indexer.get("heartbeat_interval"):
        cfg.heartbeat_interval = int(v)

    # ── RPC section ────────────────────────────────────────
    rpc = raw.get("rpc", {})
    if v := rpc.get("call_timeout"):
        cfg.call_timeout = float(v)
    cfg.restart = RestartPolicy(
        delay=float(rpc.get("restart_delay", cfg.restart.delay)),
        max_attempts=rpc.get("restart_max_attempts", cfg.restart.max_attempts),
    )

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)

    # ── Networks section ───────────────────────────────────
    for name, section in raw.get("networks", {}).items():
        cfg.networks[name] = _merge_network(cfg.networks.get(name), name, section)

    # ── Environment variable overrides ─────────────────────
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.active_network = net
    if level := os.environ.get(f"{env_prefix}LOG_LEVEL"):
        cfg.log_level = level
    if db := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db

    if network:
        cfg.active_network = network

    profile = cfg.network  # raises ValueError for an unknown name
    if url := os.environ.get(f"{env_prefix}RPC_URL"):
        profile.rpc_url = url
    if url := os.environ.get(f"{env_prefix}WS_URL"):
        profile.ws_url = url
    if addr := os.environ.get(f"{env_prefix}REGISTRY_ADDRESS"):
        profile.registry_address = addr
    if addr := os.environ.get(f"{env_prefix}TICKET_ADDRESS"):
        profile.ticket_address = addr

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    return cfg


def _merge_network(base: NetworkProfile | None, name: str, section: dict) -> NetworkProfile:
    """Overlay a [networks.<name>] table on a built-in profile, or build a new one."""
    profile = base or NetworkProfile(name=name, rpc_url="")
    if v := section.get("rpc_url"):
        profile.rpc_url = str(v)
    if "ws_url" in section:
        profile.ws_url = str(section["ws_url"])
    if (v := section.get("chain_id")) is not None:
        profile.chain_id = int(v)
    if "fallback_rpc_urls" in section:
        profile.fallback_rpc_urls = [str(u) for u in section["fallback_rpc_urls"]]
    if v := section.get("registry_address"):
        profile.registry_address = str(v)
    if v := section.get("ticket_address"):
        profile.ticket_address = str(v)
    return profile
