"""CLI entry point for the hackathon indexer."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Awaitable, Callable

import click

from hackathon_indexer.api.query import IndexQueryService
from hackathon_indexer.config import load_config
from hackathon_indexer.daemon import IndexerDaemon, run_daemon
from hackathon_indexer.errors import EndpointUnreachable
from hackathon_indexer.models.config import IndexerConfig
from hackathon_indexer.storage.sqlite import SQLiteIndexStore


def _load(ctx: click.Context) -> IndexerConfig:
    """Load config, exiting with an error for an unknown network."""
    try:
        cfg = load_config(ctx.obj["config_path"], network=ctx.obj["network"])
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())
    return cfg


def _require_contracts(cfg: IndexerConfig) -> None:
    """Exit with error if either tracked contract address is missing."""
    profile = cfg.network
    if not profile.registry_address or not profile.ticket_address:
        click.echo(f"Error: Network {profile.name!r} has no contract addresses.", err=True)
        click.echo(
            "Set HACKATHON_INDEXER_REGISTRY_ADDRESS / HACKATHON_INDEXER_TICKET_ADDRESS"
            " or [networks.<name>] in config.",
            err=True,
        )
        sys.exit(1)


def _query(cfg: IndexerConfig, fn: Callable[[IndexQueryService], Awaitable[None]]) -> None:
    """Open the store, run ``fn`` against a query service, close the store."""

    async def _run():
        store = SQLiteIndexStore(cfg.db_path)
        await store.initialize()
        try:
            await fn(IndexQueryService(store, cfg.network.registry_address))
        finally:
            await store.close()

    asyncio.run(_run())


def _echo_json(data: object) -> None:
    click.echo(json.dumps(data, indent=2))


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("-n", "--network", default=None, help="Network profile to use")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool, network: str | None) -> None:
    """hackathon-indexer - Chain-event ingestion for hackathon registry and ticket contracts."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    ctx.obj["network"] = network

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start the indexer: backfill, then follow the chain live."""
    cfg = _load(ctx)
    _require_contracts(cfg)

    click.echo(f"Starting hackathon indexer on {cfg.active_network}")
    try:
        asyncio.run(run_daemon(cfg))
    except EndpointUnreachable as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def backfill(ctx: click.Context) -> None:
    """Run a single backfill pass from the last checkpoint to the chain head."""
    cfg = _load(ctx)
    _require_contracts(cfg)

    try:
        result = asyncio.run(IndexerDaemon(cfg).backfill_once())
    except EndpointUnreachable as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if result.skipped:
        click.echo("Backfill already running; skipped.")
    elif result.error:
        click.echo(f"Backfill stopped at {result.last_checkpoint}: {result.error}", err=True)
        sys.exit(1)
    else:
        click.echo(
            f"Backfilled blocks {result.from_block}-{result.to_block}: "
            f"{result.batches} batches, {result.logs} logs"
        )


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show resolved configuration."""
    cfg = _load(ctx)
    profile = cfg.network
    click.echo(f"Network:    {profile.name} (chain id {profile.chain_id or '?'})")
    click.echo(f"RPC URLs:   {', '.join(profile.rpc_urls()) or '(not set)'}")
    click.echo(f"WS URL:     {profile.ws_url or '(not set, polling mode)'}")
    click.echo(f"Registry:   {profile.registry_address or '(not set)'}")
    click.echo(f"Tickets:    {profile.ticket_address or '(not set)'}")
    click.echo(f"Batch size: {cfg.batch_size} blocks")
    click.echo(f"Sync:       every {cfg.sync_interval}s when polling")
    click.echo(f"DB path:    {cfg.db_path}")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show indexed entity counts and ingestion health."""
    cfg = _load(ctx)

    async def _stats(service: IndexQueryService):
        s = await service.get_stats()
        click.echo(f"Events:        {s['events']}")
        click.echo(f"Participants:  {s['participants']}")
        click.echo(f"Sponsors:      {s['sponsors']}")
        click.echo(f"Tickets:       {s['tickets']}")
        click.echo("")
        click.echo(f"Received logs: {s['received']}")
        click.echo(f"Succeeded:     {s['succeeded']}")
        click.echo(f"Failed:        {s['failed']}")
        click.echo(f"Checkpoint:    {s['last_synced_block'] if s['last_synced_block'] is not None else '(none)'}")

    _query(cfg, _stats)


# ── Indexed data ───────────────────────────────────────


@cli.command()
@click.option("--organizer", default=None, help="Only events created by this address")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def events(ctx: click.Context, organizer: str | None, as_json: bool) -> None:
    """List indexed events."""
    cfg = _load(ctx)

    async def _events(service: IndexQueryService):
        if organizer:
            rows = await service.get_events_by_organizer(organizer)
        else:
            rows = await service.list_events()
        if as_json:
            _echo_json(rows)
            return
        if not rows:
            click.echo("No events indexed.")
            return
        for e in rows:
            state = "active" if e["active"] else "closed"
            click.echo(
                f"  #{e['event_id']:>4} [{state}] {e['title']} @ {e['location']} "
                f"{e['participant_count']}/{e['max_participants']} organizer={e['organizer'][:10]}..."
            )

    _query(cfg, _events)


@cli.command()
@click.argument("event_id")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def participants(ctx: click.Context, event_id: str, as_json: bool) -> None:
    """List participants of an event."""
    cfg = _load(ctx)

    async def _participants(service: IndexQueryService):
        rows = await service.get_participants(event_id)
        if as_json:
            _echo_json(rows)
            return
        if not rows:
            click.echo(f"No participants for event {event_id}.")
            return
        for p in rows:
            mark = "x" if p["checked_in"] else " "
            click.echo(f"  [{mark}] {p['wallet']} {p['name']}")

    _query(cfg, _participants)


@cli.command()
@click.argument("event_id")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def sponsors(ctx: click.Context, event_id: str, as_json: bool) -> None:
    """List sponsors of an event."""
    cfg = _load(ctx)

    async def _sponsors(service: IndexQueryService):
        rows = await service.get_sponsors(event_id)
        if as_json:
            _echo_json(rows)
            return
        if not rows:
            click.echo(f"No sponsors for event {event_id}.")
            return
        for s in rows:
            click.echo(f"  {s['wallet']} {s['name']} amount={s['amount']} wei")

    _query(cfg, _sponsors)


@cli.command()
@click.option("--holder", default=None, help="Tickets held by this address")
@click.option("--event", "event_id", default=None, help="Tickets issued for this event")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
@click.pass_context
def tickets(ctx: click.Context, holder: str | None, event_id: str | None, as_json: bool) -> None:
    """List NFT tickets by holder or by event."""
    if not holder and not event_id:
        click.echo("Error: pass --holder or --event.", err=True)
        sys.exit(1)
    cfg = _load(ctx)

    async def _tickets(service: IndexQueryService):
        if holder:
            rows = await service.get_tickets_by_holder(holder)
        else:
            rows = await service.get_event_tickets(event_id)
        if as_json:
            _echo_json(rows)
            return
        if not rows:
            click.echo("No tickets.")
            return
        for t in rows:
            used = "used" if t["used"] else "valid"
            click.echo(
                f"  #{t['token_id']} [{used}] event={t['event_id']} {t['event_title']} "
                f"holder={t['holder']}"
            )

    _query(cfg, _tickets)


@cli.command()
@click.option("-l", "--limit", type=int, default=20, help="Number of entries to show")
@click.option("--status", "filter_status", default=None,
              type=click.Choice(["received", "success", "failed"]), help="Filter by status")
@click.pass_context
def audit(ctx: click.Context, limit: int, filter_status: str | None) -> None:
    """Show the most recent ingestion audit entries."""
    cfg = _load(ctx)

    async def _audit(service: IndexQueryService):
        rows = await service.get_recent_ingestion(limit, filter_status)
        if not rows:
            click.echo("No ingestion entries.")
            return
        for r in rows:
            detail = r["error"] or r["message"] or ""
            tx = f" tx={r['tx_hash'][:18]}..." if r["tx_hash"] else ""
            click.echo(
                f"  {r['created_at']} [{r['status']:8s}] {r['kind']} "
                f"block={r['block_number']}{tx} {detail}"
            )

    _query(cfg, _audit)


@cli.command("seed-test-event")
@click.pass_context
def seed_test_event(ctx: click.Context) -> None:
    """Insert the fixed test event into the store."""
    cfg = _load(ctx)

    async def _seed(service: IndexQueryService):
        event = await service.create_test_event()
        click.echo(f"Test event #{event['event_id']}: {event['title']} ({event['location']})")

    _query(cfg, _seed)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
