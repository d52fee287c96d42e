"""PatrolGate enumerations."""

from enum import Enum, IntFlag


class ChangeType(str, Enum):
    """Kind of entry in the recent changes feed."""

    EDIT = "edit"
    NEW = "new"
    LOG = "log"
    EXTERNAL = "external"

    @classmethod
    def reviewable(cls) -> set["ChangeType"]:
        """Kinds that can be handed to a patroller."""
        return {cls.EDIT}


class PatrolAction(str, Enum):
    """Action a patroller can submit for a claimed change."""

    ENDORSE = "endorse"
    REVERT = "revert"
    SKIP = "skip"


class ActionOutcome(str, Enum):
    """Result of applying a patrol action."""

    ENDORSED = "endorsed"
    ENDORSE_FAILED = "endorse_failed"
    REVERTED = "reverted"
    # Page moved on since the change; resolved without touching content
    SUPERSEDED = "superseded"
    REVERT_FAILED = "revert_failed"
    SKIPPED = "skipped"
    NOT_FOUND = "not_found"

    def is_success(self) -> bool:
        return self in {
            ActionOutcome.ENDORSED,
            ActionOutcome.REVERTED,
            ActionOutcome.SUPERSEDED,
            ActionOutcome.SKIPPED,
        }


class SessionState(str, Enum):
    """Terminal states of a patrol session turn."""

    PRESENTED = "presented"
    EMPTY = "empty"
    STOPPED = "stopped"
    PERMISSION_ERROR = "permission_error"


class EditFlag(IntFlag):
    """Flags passed along with a proposed page version."""

    NEW = 1
    UPDATE = 2
    MINOR = 4
    SUPPRESS_RC = 8
    BOT = 16
