"""Lease model - a patroller's time-bounded claim on a change."""

from datetime import datetime, timedelta

from pydantic import BaseModel

from patrolgate.utils.time import utc_now


class Lease(BaseModel):
    """Claim row: one per change, no holder recorded."""

    change_id: int
    claimed_at: datetime

    def is_live(self, ttl_seconds: int, now: datetime | None = None) -> bool:
        """A lease is live until it is ``ttl_seconds`` old."""
        if now is None:
            now = utc_now()
        return now - self.claimed_at < timedelta(seconds=ttl_seconds)
