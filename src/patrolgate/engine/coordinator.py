"""Claim coordination - hand one change to one patroller."""

import logging
from datetime import datetime

from patrolgate.config import settings
from patrolgate.db.repositories import LeaseRepository
from patrolgate.engine.selector import QueueSelector
from patrolgate.models import Change
from patrolgate.utils.time import utc_now

logger = logging.getLogger(__name__)


class ClaimCoordinator:
    """Selects a change and claims it, reselecting when another patroller
    wins the race between selection and claim."""

    def __init__(
        self,
        selector: QueueSelector,
        leases: LeaseRepository,
        max_attempts: int | None = None,
    ):
        self.selector = selector
        self.leases = leases
        self.max_attempts = max_attempts or settings.max_claim_attempts

    async def claim_next(self, reviewer_id: str, now: datetime | None = None) -> Change | None:
        """
        Claim the next eligible change for ``reviewer_id``.

        Each change the selector offers is either claimed or passed over, so
        every pass shrinks the eligible set and the loop ends once the queue
        is exhausted. A change held only by a stale lease has that row
        removed and is claimed on the spot.

        Returns None when nothing is left to claim.
        """
        now = now or utc_now()
        passed_over: set[int] = set()

        for _ in range(self.max_attempts):
            change = await self.selector.select_next(
                excluding_actor=reviewer_id,
                now=now,
                passed_over=passed_over,
            )
            if change is None:
                return None

            if await self._acquire(change.change_id, now):
                logger.info(f"Change {change.change_id} claimed by {reviewer_id}")
                return change

            logger.warning(
                f"Lost claim race for change {change.change_id} ({reviewer_id}); reselecting"
            )
            passed_over.add(change.change_id)

        logger.error(
            f"Gave up claiming for {reviewer_id} after {self.max_attempts} selection passes"
        )
        return None

    async def _acquire(self, change_id: int, now: datetime) -> bool:
        if await self.leases.try_acquire(change_id, now):
            return True
        # Only the stale row for this change goes; a live one is left alone
        if await self.leases.evict_older_than(
            self.leases.cutoff(now), change_id=change_id, inclusive=True
        ):
            return await self.leases.try_acquire(change_id, now)
        return False
