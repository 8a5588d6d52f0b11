"""Shared fixtures for hackathon_indexer tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from hackathon_indexer.daemon import IndexerDaemon
from hackathon_indexer.ingest.backfill import BackfillCoordinator
from hackathon_indexer.ingest.dispatch import Dispatcher
from hackathon_indexer.ingest.handlers import Reconciler
from hackathon_indexer.ingest.subscriber import LogSubscriber
from hackathon_indexer.models.config import IndexerConfig, RestartPolicy
from hackathon_indexer.storage.sqlite import SQLiteIndexStore

from tests.factories import REGISTRY, TICKETS
from tests.mocks import MockChain, MockQueries

EXPLORER_BASE = "https://testnet.monadexplorer.com"


def explorer_link(kind: str, id: str, label: str | None = None) -> str:
    """Build an HTML anchor to the Monad testnet explorer for the report."""
    url = f"{EXPLORER_BASE}/{kind}/{id}"
    text = label or f"{id[:8]}...{id[-4:]}"
    return f'<a href="{url}" target="_blank">{text}</a>'


# ── Report metadata & explorer links ─────────────────────────────


def pytest_configure(config):
    """Add network info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Network"] = "Monad Testnet (chain 10143)"
    meta["Registry Contract"] = REGISTRY
    meta["Ticket Contract"] = TICKETS


def pytest_html_results_summary(prefix, summary, postfix):
    """Inject clickable explorer links into the report summary."""
    prefix.append(
        '<div style="margin:8px 0;padding:10px;background:#f8f9fa;border:1px solid #dee2e6;'
        'border-radius:4px;font-family:monospace;font-size:13px;">'
        "<strong>Monad Testnet Explorer Links</strong><br/>"
        f'Registry: {explorer_link("address", REGISTRY, REGISTRY)}<br/>'
        f'Tickets: {explorer_link("address", TICKETS, TICKETS)}'
        "</div>"
    )


def make_test_config(**overrides) -> IndexerConfig:
    """Build an IndexerConfig suitable for testing."""
    defaults = dict(
        active_network="monad-testnet",
        log_level="debug",
        start_block=0,
        batch_size=10,
        sync_interval=1,
        heartbeat_interval=1,
        call_timeout=2.0,
        restart=RestartPolicy(delay=0.01, max_attempts=3),
        db_path=":memory:",
    )
    defaults.update(overrides)
    return IndexerConfig(**defaults)


@pytest.fixture
def test_config():
    """Default IndexerConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteIndexStore."""
    s = SQLiteIndexStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def mock_queries():
    return MockQueries()


@pytest.fixture
def mock_chain():
    return MockChain(head=0)


@pytest.fixture
def reconciler(store, mock_queries):
    return Reconciler(store, mock_queries)


@pytest.fixture
def dispatcher(store, reconciler):
    return Dispatcher(store, reconciler)


@pytest.fixture
def backfill(mock_chain, dispatcher, store):
    return BackfillCoordinator(
        mock_chain, dispatcher, store, [REGISTRY, TICKETS], batch_size=10,
    )


@pytest.fixture
def subscriber(mock_chain, dispatcher):
    return LogSubscriber(mock_chain, dispatcher, [REGISTRY, TICKETS], heartbeat_interval=0.05)


@pytest.fixture
async def daemon(test_config, store, mock_chain, mock_queries):
    """Fully wired IndexerDaemon with mocked chain and contract reads."""
    d = IndexerDaemon(test_config)
    d.store = store
    d.resolver = mock_chain
    d.queries = mock_queries
    d.reconciler = Reconciler(store, mock_queries)
    d.dispatcher = Dispatcher(store, d.reconciler)
    d.subscriber = LogSubscriber(
        mock_chain, d.dispatcher, [REGISTRY, TICKETS], heartbeat_interval=0.05,
    )
    d.backfill = BackfillCoordinator(
        mock_chain, d.dispatcher, store, [REGISTRY, TICKETS], batch_size=10,
    )
    return d
