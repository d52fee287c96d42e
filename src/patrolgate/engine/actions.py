"""Patrol actions - endorse, revert and skip a claimed change."""

import logging

from patrolgate.config import settings
from patrolgate.engine.source import ChangeSource
from patrolgate.models import ActionOutcome, Change, EditFlag, PatrolAction

logger = logging.getLogger(__name__)

# Reverts are minor updates kept out of the recent changes feed
REVERT_FLAGS = EditFlag.UPDATE | EditFlag.MINOR | EditFlag.SUPPRESS_RC


class ActionProcessor:
    """Applies a patroller's decision to a change they hold a claim on."""

    def __init__(self, source: ChangeSource, comment_template: str | None = None):
        self.source = source
        self.comment_template = comment_template or settings.revert_comment_template

    async def apply(
        self,
        action: PatrolAction,
        change_id: int,
        reviewer_id: str,
        reason: str = "",
    ) -> ActionOutcome:
        """Dispatch ``action`` for the change with ``change_id``."""
        if action == PatrolAction.SKIP:
            return await self.skip(change_id, reviewer_id)

        # Blocked reviewers fail the action whether or not the change exists
        if await self.source.is_reviewer_restricted(reviewer_id):
            logger.info(f"Blocked reviewer {reviewer_id} tried to {action.value} {change_id}")
            if action == PatrolAction.ENDORSE:
                return ActionOutcome.ENDORSE_FAILED
            return ActionOutcome.REVERT_FAILED

        change = await self.source.get_change(change_id)
        if change is None:
            logger.warning(f"{action.value} by {reviewer_id} for unknown change {change_id}")
            return ActionOutcome.NOT_FOUND

        if action == PatrolAction.ENDORSE:
            return await self.endorse(change, reviewer_id)
        return await self.revert(change, reviewer_id, reason)

    async def endorse(self, change: Change, reviewer_id: str) -> ActionOutcome:
        """Mark the change patrolled. Endorsing twice is harmless."""
        if await self.source.is_reviewer_restricted(reviewer_id):
            logger.info(f"Blocked reviewer {reviewer_id} tried to endorse {change.change_id}")
            return ActionOutcome.ENDORSE_FAILED

        if not change.patrolled:
            await self.source.mark_resolved(change, reviewer_id)
        logger.info(f"Endorsed {change.change_id} ({reviewer_id})")
        return ActionOutcome.ENDORSED

    async def revert(self, change: Change, reviewer_id: str, reason: str = "") -> ActionOutcome:
        """
        Put the page back to the revision before ``change``.

        The page is only rewritten if ``change`` is still its latest
        revision. If someone edited the page since, the later edit wins and
        the change is just marked patrolled (SUPERSEDED). A change that is
        already patrolled is never reverted again.
        """
        if await self.source.is_reviewer_restricted(reviewer_id):
            logger.info(f"Blocked reviewer {reviewer_id} tried to revert {change.change_id}")
            return ActionOutcome.REVERT_FAILED

        if change.patrolled:
            return ActionOutcome.SUPERSEDED

        if change.previous_revision_id is None:
            logger.warning(f"Change {change.change_id} has no earlier revision to revert to")
            return ActionOutcome.REVERT_FAILED

        latest = await self.source.latest_revision_id(change.page_id)
        outcome = ActionOutcome.SUPERSEDED

        if change.revision_id == latest:
            content = await self.source.revision_content(change.previous_revision_id)
            if content is None:
                logger.warning(
                    f"Revision {change.previous_revision_id} missing; cannot revert {change.change_id}"
                )
                return ActionOutcome.REVERT_FAILED

            logger.info(f'Reverting "{change.title}" to r{change.previous_revision_id}')
            saved = await self.source.propose_new_version(
                page_id=change.page_id,
                content=content,
                comment=self.revert_comment(reason),
                flags=REVERT_FLAGS,
                actor_id=reviewer_id,
                base_revision_id=latest,
            )
            if saved:
                outcome = ActionOutcome.REVERTED
            elif await self.source.latest_revision_id(change.page_id) == change.revision_id:
                logger.warning(f"Saving revert of {change.change_id} failed")
                return ActionOutcome.REVERT_FAILED

        if outcome == ActionOutcome.SUPERSEDED:
            logger.info(f"Change {change.change_id} superseded by a later edit; not reverting")

        await self.source.mark_resolved(change, reviewer_id)
        return outcome

    async def skip(self, change_id: int, reviewer_id: str) -> ActionOutcome:
        """
        Leave the change for someone else.

        The lease is not released: it stays until it expires, so the same
        reviewer is not handed this change again straight away.
        """
        logger.info(f"Skipped {change_id} ({reviewer_id})")
        return ActionOutcome.SKIPPED

    def revert_comment(self, reason: str = "") -> str:
        reason = reason.strip()
        return self.comment_template.format(reason=f" ({reason})" if reason else "")
