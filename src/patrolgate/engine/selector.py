"""Queue selection - which change a patroller sees next."""

from collections.abc import Collection
from datetime import datetime, timedelta

from patrolgate.config import settings
from patrolgate.engine.source import ChangeSource
from patrolgate.models import Change
from patrolgate.utils.time import utc_now


class QueueSelector:
    """Picks the oldest change a reviewer may patrol.

    Eligible means: not made by a bot, not yet patrolled, a reviewable kind,
    not made by the reviewer, and no live lease. A change whose lease has
    gone stale counts as unclaimed.
    """

    def __init__(self, source: ChangeSource, ttl_seconds: int | None = None):
        self.source = source
        self.ttl_seconds = ttl_seconds or settings.lease_ttl_seconds

    async def select_next(
        self,
        excluding_actor: str,
        now: datetime | None = None,
        passed_over: Collection[int] = (),
    ) -> Change | None:
        live_since = (now or utc_now()) - timedelta(seconds=self.ttl_seconds)
        changes = await self.source.find_eligible_unclaimed(
            excluding_actor=excluding_actor,
            live_since=live_since,
            passed_over=passed_over,
            limit=1,
        )
        return changes[0] if changes else None
