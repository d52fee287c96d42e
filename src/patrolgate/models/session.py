"""Patrol session request and result models."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from patrolgate.models.change import Change
from patrolgate.models.enums import ActionOutcome, PatrolAction, SessionState


class PatrolRequest(BaseModel):
    """What a patroller submitted for this turn.

    A turn with no token is a fresh claim request. A turn with a token is
    the form posted back from a previously presented change.
    """

    token: Optional[str] = None
    change_id: Optional[int] = None
    action: Optional[PatrolAction] = None
    revert_reason: str = ""
    revert_reason_common: str = ""
    another: bool = False

    def chosen_revert_reason(self) -> str:
        """Free-text reason wins over the predefined one when not blank."""
        if self.revert_reason.strip():
            return self.revert_reason
        return self.revert_reason_common


class Presented(BaseModel):
    state: Literal[SessionState.PRESENTED] = SessionState.PRESENTED
    change: Change
    token: str
    revert_reasons: list[str] = Field(default_factory=list)
    outcome: Optional[ActionOutcome] = None


class Empty(BaseModel):
    state: Literal[SessionState.EMPTY] = SessionState.EMPTY
    outcome: Optional[ActionOutcome] = None
    message: str = "No changes are waiting for review"


class Stopped(BaseModel):
    state: Literal[SessionState.STOPPED] = SessionState.STOPPED
    outcome: Optional[ActionOutcome] = None
    message: str = "Patrolling stopped"


class PermissionErrorResult(BaseModel):
    state: Literal[SessionState.PERMISSION_ERROR] = SessionState.PERMISSION_ERROR
    reason: Literal["permission", "blocked"]
    message: str


SessionResult = Annotated[
    Union[Presented, Empty, Stopped, PermissionErrorResult],
    Field(discriminator="state"),
]
