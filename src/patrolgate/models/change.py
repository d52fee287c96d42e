"""Change model - a pending edit awaiting review."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from patrolgate.models.enums import ChangeType


class Change(BaseModel):
    """An entry in the recent changes feed, as seen by the patrol queue."""

    change_id: int
    page_id: int
    title: str
    actor_id: str
    change_type: ChangeType = ChangeType.EDIT
    is_bot: bool = False
    patrolled: bool = False

    # Revision the change replaced (None for page creations) and the one it made
    previous_revision_id: Optional[int] = None
    revision_id: int

    timestamp: datetime

    def is_reviewable(self) -> bool:
        return self.change_type in ChangeType.reviewable()


class Reviewer(BaseModel):
    """Patroller identity plus the rights the queue cares about."""

    reviewer_id: str
    can_patrol: bool = False
    blocked: bool = False
