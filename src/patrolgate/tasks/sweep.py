"""Stale lease eviction."""

import asyncio
import logging
import random
from datetime import datetime
from typing import Optional

from patrolgate.config import settings
from patrolgate.db.base import get_session
from patrolgate.db.repositories import LeaseRepository

logger = logging.getLogger("patrolgate.sweep")

_sweep_task: Optional[asyncio.Task] = None
_shutdown_event: Optional[asyncio.Event] = None


async def evict_stale_leases(leases: LeaseRepository, now: datetime | None = None) -> int:
    """Delete every lease older than the TTL.

    Keeps the lease table small and stops a change from staying hidden
    after the patroller holding it walked away.
    """
    removed = await leases.evict_older_than(leases.cutoff(now))
    if removed:
        logger.info(f"Evicted {removed} stale patrol leases")
    return removed


async def maybe_evict(
    leases: LeaseRepository,
    now: datetime | None = None,
    rng: random.Random | None = None,
    odds: int | None = None,
) -> int | None:
    """Evict stale leases on roughly one call in ``odds``.

    Returns the eviction count when the sweep ran, None when it was skipped.
    """
    odds = odds or settings.prune_odds
    if (rng or random).randrange(odds) != 0:
        return None
    return await evict_stale_leases(leases, now)


async def lease_sweep_loop(interval_seconds: int):
    """
    Background loop evicting stale leases on a schedule.

    Runs alongside the per-turn probabilistic eviction, never instead of it.
    The interval is jittered by ±20% so several instances do not sweep in
    lockstep.
    """
    logger.info(f"Lease sweep loop started (base interval: {interval_seconds}s with ±20% jitter)")

    while not _shutdown_event.is_set():
        try:
            async with get_session() as session:
                await evict_stale_leases(LeaseRepository(session))
        except Exception as e:
            logger.error(f"Lease sweep error: {e}", exc_info=True)

        jittered_interval = interval_seconds * random.uniform(0.8, 1.2)

        try:
            await asyncio.wait_for(_shutdown_event.wait(), timeout=jittered_interval)
        except asyncio.TimeoutError:
            pass

    logger.info("Lease sweep loop stopped")


async def start_lease_sweep() -> bool:
    """Start the background sweep if an interval is configured."""
    global _sweep_task, _shutdown_event

    interval = settings.lease_sweep_interval_seconds
    if not interval:
        logger.info("Background lease sweep disabled; relying on per-turn eviction")
        return False

    _shutdown_event = asyncio.Event()
    _sweep_task = asyncio.create_task(lease_sweep_loop(interval))
    return True


async def stop_lease_sweep():
    """Stop the lease sweep background task."""
    global _sweep_task, _shutdown_event

    if _shutdown_event:
        _shutdown_event.set()

    if _sweep_task:
        try:
            await asyncio.wait_for(_sweep_task, timeout=10.0)
        except asyncio.TimeoutError:
            logger.warning("Lease sweep task did not stop gracefully, cancelling")
            _sweep_task.cancel()
            try:
                await _sweep_task
            except asyncio.CancelledError:
                pass

    _sweep_task = None
    _shutdown_event = None
