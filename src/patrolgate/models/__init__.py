"""PatrolGate data models."""

from patrolgate.models.enums import (
    ActionOutcome,
    ChangeType,
    EditFlag,
    PatrolAction,
    SessionState,
)
from patrolgate.models.change import Change, Reviewer
from patrolgate.models.lease import Lease
from patrolgate.models.session import (
    Empty,
    PatrolRequest,
    PermissionErrorResult,
    Presented,
    SessionResult,
    Stopped,
)

__all__ = [
    "ActionOutcome",
    "Change",
    "ChangeType",
    "EditFlag",
    "Empty",
    "Lease",
    "PatrolAction",
    "PatrolRequest",
    "PermissionErrorResult",
    "Presented",
    "Reviewer",
    "SessionResult",
    "SessionState",
    "Stopped",
]
