"""Restart supervisor for live subscription sessions."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from hackathon_indexer.errors import (
    EndpointUnreachable,
    StreamingUnsupported,
    SubscriptionError,
)
from hackathon_indexer.models.config import RestartPolicy

log = logging.getLogger(__name__)


async def supervise(
    run_once: Callable[[], Awaitable[None]],
    policy: RestartPolicy,
    stop: asyncio.Event,
    on_restart: Callable[[], Awaitable[None]] | None = None,
) -> int:
    """Run ``run_once`` until it returns cleanly, ``stop`` is set, or attempts run out.

    SubscriptionError and EndpointUnreachable trigger a restart after
    ``policy.delay`` seconds (the wait ends early on stop); ``on_restart`` is
    awaited before each new attempt. StreamingUnsupported is not retryable and
    propagates. Returns the number of attempts made.
    """
    attempts = 0
    while not stop.is_set():
        attempts += 1
        try:
            await run_once()
            return attempts
        except StreamingUnsupported:
            raise
        except (SubscriptionError, EndpointUnreachable) as exc:
            if policy.max_attempts is not None and attempts >= policy.max_attempts:
                log.error("Giving up after %d attempts: %s", attempts, exc)
                raise
            log.warning(
                "Session failed (attempt %d): %s; restarting in %.1fs",
                attempts, exc, policy.delay,
            )
        try:
            await asyncio.wait_for(stop.wait(), timeout=policy.delay)
        except asyncio.TimeoutError:
            pass
        if on_restart is not None and not stop.is_set():
            await on_restart()
    return attempts
