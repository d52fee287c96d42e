"""Database repositories for PatrolGate entities."""

import functools
import logging
from collections.abc import Collection
from datetime import datetime, timedelta

from sqlalchemy import delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from patrolgate.config import settings
from patrolgate.db.tables import (
    ChangeTable,
    LeaseTable,
    PageTable,
    ReviewerTable,
    RevisionTable,
)
from patrolgate.engine.errors import StorageUnavailable
from patrolgate.engine.source import ChangeSource
from patrolgate.models import Change, ChangeType, EditFlag, Lease, Reviewer
from patrolgate.utils.time import ensure_utc, utc_now

logger = logging.getLogger(__name__)


def storage_guard(func):
    """Re-raise connection-level database failures as StorageUnavailable."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (OperationalError, InterfaceError) as e:
            raise StorageUnavailable(str(e.orig or e)) from e

    return wrapper


class LeaseRepository:
    """Repository for patrol leases.

    All mutation is insert-or-noop or delete-by-predicate. Rows are never
    updated in place.
    """

    def __init__(self, session: AsyncSession, ttl_seconds: int | None = None):
        self.session = session
        self.ttl_seconds = ttl_seconds or settings.lease_ttl_seconds

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Claims made before this instant are stale."""
        return (now or utc_now()) - timedelta(seconds=self.ttl_seconds)

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(LeaseTable)
        if dialect == "sqlite":
            return sqlite.insert(LeaseTable)
        raise ValueError(
            f"Unsupported database dialect {dialect!r}: patrol leases need PostgreSQL or SQLite"
        )

    @storage_guard
    async def try_acquire(self, change_id: int, now: datetime | None = None) -> bool:
        """Insert a claim row; True only if this call's row was the one stored."""
        stmt = (
            self._insert()
            .values(change_id=change_id, claimed_at=now or utc_now())
            .on_conflict_do_nothing(index_elements=[LeaseTable.change_id])
            .returning(LeaseTable.change_id)
        )
        result = await self.session.execute(stmt)
        acquired = result.scalar_one_or_none() is not None
        await self.session.flush()
        return acquired

    @storage_guard
    async def release(self, change_id: int) -> bool:
        """Release a lease. Missing rows are not an error."""
        result = await self.session.execute(
            delete(LeaseTable).where(LeaseTable.change_id == change_id)
        )
        return result.rowcount > 0

    @storage_guard
    async def evict_older_than(
        self,
        cutoff: datetime,
        change_id: int | None = None,
        inclusive: bool = False,
    ) -> int:
        """Delete claims made before ``cutoff``; returns rows removed.

        With ``inclusive`` a claim made exactly at ``cutoff`` goes too, which
        matches ``Lease.is_live`` treating a lease of exactly TTL age as stale.
        """
        if inclusive:
            stmt = delete(LeaseTable).where(LeaseTable.claimed_at <= cutoff)
        else:
            stmt = delete(LeaseTable).where(LeaseTable.claimed_at < cutoff)
        if change_id is not None:
            stmt = stmt.where(LeaseTable.change_id == change_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    @storage_guard
    async def get(self, change_id: int) -> Lease | None:
        """Get the lease row for a change, live or stale."""
        result = await self.session.execute(
            select(LeaseTable).where(LeaseTable.change_id == change_id)
        )
        row = result.scalar_one_or_none()
        return self._row_to_model(row) if row else None

    async def has_live(self, change_id: int, now: datetime | None = None) -> bool:
        lease = await self.get(change_id)
        if lease is None:
            return False
        return lease.is_live(self.ttl_seconds, now)

    def _row_to_model(self, row: LeaseTable) -> Lease:
        """Convert database row to model."""
        return Lease(change_id=row.change_id, claimed_at=ensure_utc(row.claimed_at))


class SqlChangeSource(ChangeSource):
    """Change source backed by the repository's own tables."""

    def __init__(self, session: AsyncSession, latest_revision_only: bool | None = None):
        self.session = session
        if latest_revision_only is None:
            latest_revision_only = settings.latest_revision_only
        self.latest_revision_only = latest_revision_only

    @storage_guard
    async def find_eligible_unclaimed(
        self,
        excluding_actor: str,
        live_since: datetime,
        passed_over: Collection[int] = (),
        limit: int = 1,
    ) -> list[Change]:
        query = (
            select(ChangeTable)
            .outerjoin(LeaseTable, LeaseTable.change_id == ChangeTable.change_id)
            .where(
                ChangeTable.is_bot.is_(False),
                ChangeTable.patrolled.is_(False),
                ChangeTable.change_type.in_(sorted(ChangeType.reviewable())),
                ChangeTable.actor_id != excluding_actor,
                or_(
                    LeaseTable.change_id.is_(None),
                    LeaseTable.claimed_at <= live_since,
                ),
            )
            .order_by(ChangeTable.change_id.asc())
            .limit(limit)
        )

        if passed_over:
            query = query.where(ChangeTable.change_id.not_in(list(passed_over)))

        if self.latest_revision_only:
            query = query.join(PageTable, PageTable.page_id == ChangeTable.page_id).where(
                ChangeTable.revision_id == PageTable.latest_revision_id
            )

        result = await self.session.execute(query)
        return [self._row_to_model(r) for r in result.scalars().all()]

    @storage_guard
    async def get_change(self, change_id: int) -> Change | None:
        row = await self.session.get(ChangeTable, change_id, populate_existing=True)
        return self._row_to_model(row) if row else None

    @storage_guard
    async def latest_revision_id(self, page_id: int) -> int | None:
        result = await self.session.execute(
            select(PageTable.latest_revision_id).where(PageTable.page_id == page_id)
        )
        return result.scalar_one_or_none()

    @storage_guard
    async def revision_content(self, revision_id: int) -> str | None:
        result = await self.session.execute(
            select(RevisionTable.content).where(RevisionTable.revision_id == revision_id)
        )
        return result.scalar_one_or_none()

    @storage_guard
    async def propose_new_version(
        self,
        page_id: int,
        content: str,
        comment: str,
        flags: EditFlag,
        actor_id: str,
        base_revision_id: int | None = None,
    ) -> bool:
        page = await self.session.get(PageTable, page_id, populate_existing=True)
        if page is None:
            return False

        previous = page.latest_revision_id
        if base_revision_id is not None and previous != base_revision_id:
            return False

        now = utc_now()
        revision = RevisionTable(
            page_id=page_id,
            parent_revision_id=previous,
            content=content,
            comment=comment,
            actor_id=actor_id,
            flags=int(flags),
            created_at=now,
        )
        self.session.add(revision)
        await self.session.flush()

        # Compare-and-set so a concurrent save between the read and here loses
        result = await self.session.execute(
            update(PageTable)
            .where(
                PageTable.page_id == page_id,
                PageTable.latest_revision_id == previous
                if previous is not None
                else PageTable.latest_revision_id.is_(None),
            )
            .values(latest_revision_id=revision.revision_id)
        )
        if result.rowcount == 0:
            logger.warning(f"Page {page_id} moved past r{previous} during save; discarding")
            await self.session.delete(revision)
            await self.session.flush()
            return False

        if not flags & EditFlag.SUPPRESS_RC:
            self.session.add(
                ChangeTable(
                    page_id=page_id,
                    title=page.title,
                    actor_id=actor_id,
                    change_type=ChangeType.NEW if previous is None else ChangeType.EDIT,
                    is_bot=bool(flags & EditFlag.BOT),
                    previous_revision_id=previous,
                    revision_id=revision.revision_id,
                    created_at=now,
                )
            )
        await self.session.flush()
        return True

    @storage_guard
    async def mark_resolved(self, change: Change, reviewer_id: str) -> None:
        await self.session.execute(
            update(ChangeTable)
            .where(
                ChangeTable.change_id == change.change_id,
                ChangeTable.patrolled.is_(False),
            )
            .values(patrolled=True, patrolled_by=reviewer_id)
        )

    @storage_guard
    async def is_reviewer_restricted(self, reviewer_id: str) -> bool:
        reviewer = await self.get_reviewer(reviewer_id)
        return bool(reviewer and reviewer.blocked)

    @storage_guard
    async def can_patrol(self, reviewer_id: str) -> bool:
        reviewer = await self.get_reviewer(reviewer_id)
        return bool(reviewer and reviewer.can_patrol)

    # =========================================================================
    # Repository writes (page history and reviewer rights)
    # =========================================================================

    async def get_reviewer(self, reviewer_id: str) -> Reviewer | None:
        row = await self.session.get(ReviewerTable, reviewer_id, populate_existing=True)
        if row is None:
            return None
        return Reviewer(
            reviewer_id=row.reviewer_id,
            can_patrol=row.can_patrol,
            blocked=row.blocked,
        )

    @storage_guard
    async def upsert_reviewer(
        self,
        reviewer_id: str,
        can_patrol: bool = True,
        blocked: bool = False,
    ) -> Reviewer:
        """Create or update reviewer rights."""
        row = await self.session.get(ReviewerTable, reviewer_id)
        if row:
            row.can_patrol = can_patrol
            row.blocked = blocked
        else:
            row = ReviewerTable(reviewer_id=reviewer_id, can_patrol=can_patrol, blocked=blocked)
            self.session.add(row)
        await self.session.flush()
        return Reviewer(reviewer_id=reviewer_id, can_patrol=can_patrol, blocked=blocked)

    @storage_guard
    async def create_page(self, title: str, content: str, actor_id: str) -> Change:
        """Create a page with its first revision and record the creation."""
        page = PageTable(title=title)
        self.session.add(page)
        await self.session.flush()
        return await self.record_edit(
            page.page_id, content, actor_id, change_type=ChangeType.NEW
        )

    @storage_guard
    async def record_edit(
        self,
        page_id: int,
        content: str,
        actor_id: str,
        comment: str = "",
        is_bot: bool = False,
        change_type: ChangeType = ChangeType.EDIT,
    ) -> Change:
        """Save a page version and add it to the recent changes feed."""
        page = await self.session.get(PageTable, page_id)
        if page is None:
            raise ValueError(f"Unknown page {page_id}")

        now = utc_now()
        previous = page.latest_revision_id
        revision = RevisionTable(
            page_id=page_id,
            parent_revision_id=previous,
            content=content,
            comment=comment,
            actor_id=actor_id,
            flags=int(EditFlag.BOT) if is_bot else 0,
            created_at=now,
        )
        self.session.add(revision)
        await self.session.flush()
        page.latest_revision_id = revision.revision_id

        row = ChangeTable(
            page_id=page_id,
            title=page.title,
            actor_id=actor_id,
            change_type=change_type,
            is_bot=is_bot,
            previous_revision_id=previous,
            revision_id=revision.revision_id,
            created_at=now,
        )
        self.session.add(row)
        await self.session.flush()
        return self._row_to_model(row)

    def _row_to_model(self, row: ChangeTable) -> Change:
        """Convert database row to model."""
        return Change(
            change_id=row.change_id,
            page_id=row.page_id,
            title=row.title,
            actor_id=row.actor_id,
            change_type=ChangeType(row.change_type),
            is_bot=row.is_bot,
            patrolled=row.patrolled,
            previous_revision_id=row.previous_revision_id,
            revision_id=row.revision_id,
            timestamp=ensure_utc(row.created_at),
        )
