"""Patrol session controller - one request, one turn."""

import logging
import random
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from patrolgate.auth.tokens import issue_action_token, verify_action_token
from patrolgate.config import settings
from patrolgate.db.repositories import LeaseRepository, SqlChangeSource
from patrolgate.engine.actions import ActionProcessor
from patrolgate.engine.coordinator import ClaimCoordinator
from patrolgate.engine.errors import InvalidToken, PermissionDenied, ReviewerRestricted
from patrolgate.engine.selector import QueueSelector
from patrolgate.engine.source import ChangeSource
from patrolgate.models import (
    ActionOutcome,
    Empty,
    PatrolRequest,
    PermissionErrorResult,
    Presented,
    SessionResult,
    Stopped,
)
from patrolgate.tasks.sweep import maybe_evict
from patrolgate.utils.time import utc_now

logger = logging.getLogger(__name__)


class PatrolSession:
    """Drives one patrol turn.

    START -> (maybe EVICT) -> ACT_IF_REQUESTED -> CHECK_STOP -> CLAIM_LOOP,
    ending in Presented, Empty, Stopped or a permission error.
    """

    def __init__(
        self,
        source: ChangeSource,
        leases: LeaseRepository,
        rng: Optional[random.Random] = None,
    ):
        self.source = source
        self.leases = leases
        self.rng = rng
        self.actions = ActionProcessor(source)
        self.coordinator = ClaimCoordinator(
            QueueSelector(source, ttl_seconds=leases.ttl_seconds), leases
        )

    @classmethod
    def for_session(cls, session: AsyncSession, rng: Optional[random.Random] = None) -> "PatrolSession":
        """Build a controller over the SQL change source."""
        return cls(SqlChangeSource(session), LeaseRepository(session), rng=rng)

    async def begin_session(self, reviewer_id: str, request: PatrolRequest) -> SessionResult:
        now = utc_now()

        try:
            await self._check_permissions(reviewer_id)
        except PermissionDenied as e:
            return PermissionErrorResult(reason="permission", message=e.message)
        except ReviewerRestricted as e:
            return PermissionErrorResult(reason="blocked", message=e.message)

        await maybe_evict(self.leases, now=now, rng=self.rng)

        outcome = await self._act_if_requested(reviewer_id, request)

        # A posted form without "another" means the patroller is pausing
        if request.token is not None and not request.another:
            logger.info(f"{reviewer_id} stopped patrolling")
            return Stopped(outcome=outcome)

        change = await self.coordinator.claim_next(reviewer_id, now=now)
        if change is None:
            return Empty(outcome=outcome)

        return Presented(
            change=change,
            token=issue_action_token(reviewer_id, change.change_id),
            revert_reasons=list(settings.revert_reasons),
            outcome=outcome,
        )

    async def _check_permissions(self, reviewer_id: str) -> None:
        if not await self.source.can_patrol(reviewer_id):
            raise PermissionDenied(reviewer_id)
        if await self.source.is_reviewer_restricted(reviewer_id):
            raise ReviewerRestricted(reviewer_id)

    async def _act_if_requested(
        self, reviewer_id: str, request: PatrolRequest
    ) -> ActionOutcome | None:
        if request.token is None or request.action is None or request.change_id is None:
            return None

        try:
            verify_action_token(request.token, reviewer_id, request.change_id)
        except InvalidToken as e:
            # A forged or stale form is treated as a plain claim request
            logger.info(f"Ignoring action from {reviewer_id}: {e.message}")
            return None

        return await self.actions.apply(
            request.action,
            request.change_id,
            reviewer_id,
            reason=request.chosen_revert_reason(),
        )
