"""Contract for the content repository the patrol queue reads from."""

from abc import ABC, abstractmethod
from collections.abc import Collection
from datetime import datetime

from patrolgate.models import Change, EditFlag


class ChangeSource(ABC):
    """Everything the patrol core needs from the content repository.

    ``mark_resolved`` must be safe to call more than once for the same
    change.
    """

    @abstractmethod
    async def find_eligible_unclaimed(
        self,
        excluding_actor: str,
        live_since: datetime,
        passed_over: Collection[int] = (),
        limit: int = 1,
    ) -> list[Change]:
        """Return reviewable changes with no lease claimed after
        ``live_since``, oldest first."""

    @abstractmethod
    async def get_change(self, change_id: int) -> Change | None:
        ...

    @abstractmethod
    async def latest_revision_id(self, page_id: int) -> int | None:
        ...

    @abstractmethod
    async def revision_content(self, revision_id: int) -> str | None:
        ...

    @abstractmethod
    async def propose_new_version(
        self,
        page_id: int,
        content: str,
        comment: str,
        flags: EditFlag,
        actor_id: str,
        base_revision_id: int | None = None,
    ) -> bool:
        """Save a new page version.

        When ``base_revision_id`` is given the save only happens if it is
        still the page's latest revision.
        """

    @abstractmethod
    async def mark_resolved(self, change: Change, reviewer_id: str) -> None:
        ...

    @abstractmethod
    async def is_reviewer_restricted(self, reviewer_id: str) -> bool:
        ...

    @abstractmethod
    async def can_patrol(self, reviewer_id: str) -> bool:
        ...
