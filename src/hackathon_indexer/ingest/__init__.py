"""Ingestion pipeline: dispatch, reconciliation, live subscription and backfill."""

from hackathon_indexer.ingest.backfill import BackfillCoordinator
from hackathon_indexer.ingest.dispatch import Dispatcher
from hackathon_indexer.ingest.handlers import Reconciler
from hackathon_indexer.ingest.subscriber import LogSubscriber, SubscriptionState
from hackathon_indexer.ingest.supervisor import supervise

__all__ = [
    "BackfillCoordinator",
    "Dispatcher",
    "Reconciler",
    "LogSubscriber", "SubscriptionState",
    "supervise",
]
