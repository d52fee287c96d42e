"""
Lease store tests: conflict-safe claim insert, release and age-based eviction.
"""

import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from patrolgate.db.repositories import LeaseRepository
from patrolgate.engine import StorageUnavailable
from patrolgate.utils.time import utc_now


@pytest.mark.asyncio
async def test_try_acquire_only_first_insert_wins(leases: LeaseRepository):
    now = utc_now()

    assert await leases.try_acquire(1, now) is True
    assert await leases.try_acquire(1, now) is False

    lease = await leases.get(1)
    assert lease is not None
    assert lease.change_id == 1


@pytest.mark.asyncio
async def test_try_acquire_does_not_replace_stale_row(leases: LeaseRepository):
    """Staleness is the sweeper's business; acquire never overwrites a row."""
    old = utc_now() - timedelta(seconds=600)
    assert await leases.try_acquire(7, old) is True

    assert await leases.try_acquire(7) is False
    lease = await leases.get(7)
    assert abs((lease.claimed_at - old).total_seconds()) < 1


@pytest.mark.asyncio
async def test_release_is_idempotent(leases: LeaseRepository):
    await leases.try_acquire(3)

    assert await leases.release(3) is True
    assert await leases.release(3) is False
    assert await leases.get(3) is None
    assert await leases.try_acquire(3) is True


@pytest.mark.asyncio
async def test_eviction_ttl_boundary(leases: LeaseRepository):
    """A 121s-old claim is evictable; a 119s-old one is not."""
    now = utc_now()
    await leases.try_acquire(1, now - timedelta(seconds=121))
    await leases.try_acquire(2, now - timedelta(seconds=119))

    removed = await leases.evict_older_than(leases.cutoff(now))

    assert removed == 1
    assert await leases.get(1) is None
    assert await leases.get(2) is not None


@pytest.mark.asyncio
async def test_eviction_can_target_one_change(leases: LeaseRepository):
    now = utc_now()
    await leases.try_acquire(1, now - timedelta(seconds=300))
    await leases.try_acquire(2, now - timedelta(seconds=300))

    removed = await leases.evict_older_than(leases.cutoff(now), change_id=2)

    assert removed == 1
    assert await leases.get(1) is not None
    assert await leases.get(2) is None


@pytest.mark.asyncio
async def test_has_live(leases: LeaseRepository):
    now = utc_now()
    await leases.try_acquire(1, now - timedelta(seconds=119))
    await leases.try_acquire(2, now - timedelta(seconds=121))

    assert await leases.has_live(1, now) is True
    assert await leases.has_live(2, now) is False
    assert await leases.has_live(3, now) is False


@pytest.mark.asyncio
async def test_concurrent_acquire_exactly_one_wins(session_factory):
    """N concurrent claimers on one change: exactly one gets it."""

    async def claim() -> bool:
        async with session_factory() as s:
            acquired = await LeaseRepository(s).try_acquire(42)
            await s.commit()
            return acquired

    results = await asyncio.gather(*(claim() for _ in range(5)))

    assert sum(results) == 1


@pytest.mark.asyncio
async def test_storage_failure_surfaces_as_storage_unavailable(session: AsyncSession):
    leases = LeaseRepository(session)
    session.execute = AsyncMock(
        side_effect=OperationalError("DELETE", {}, Exception("connection refused"))
    )

    with pytest.raises(StorageUnavailable) as exc_info:
        await leases.release(1)

    assert exc_info.value.code == "STORAGE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_inclusive_eviction_takes_claim_exactly_at_cutoff(leases: LeaseRepository):
    """A claim exactly TTL old is stale; only the inclusive form removes it."""
    now = utc_now()
    await leases.try_acquire(4, now - timedelta(seconds=120))

    assert await leases.has_live(4, now) is False
    assert await leases.evict_older_than(leases.cutoff(now), change_id=4) == 0
    assert await leases.evict_older_than(leases.cutoff(now), change_id=4, inclusive=True) == 1
    assert await leases.get(4) is None


def test_unsupported_dialect_is_rejected():
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "mysql"

    with pytest.raises(ValueError, match="mysql"):
        LeaseRepository(session, ttl_seconds=120)._insert()
