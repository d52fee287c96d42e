"""PatrolGate engine errors."""


class PatrolGateError(Exception):
    """Base error for PatrolGate operations."""

    def __init__(self, message: str, code: str = "PATROLGATE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class PermissionDenied(PatrolGateError):
    """Reviewer lacks the patrol right."""

    def __init__(self, reviewer_id: str):
        super().__init__(
            f"Reviewer {reviewer_id} is not allowed to patrol",
            "PERMISSION_DENIED",
        )
        self.reviewer_id = reviewer_id


class ReviewerRestricted(PatrolGateError):
    """Reviewer is blocked."""

    def __init__(self, reviewer_id: str):
        super().__init__(f"Reviewer {reviewer_id} is blocked", "REVIEWER_RESTRICTED")
        self.reviewer_id = reviewer_id


class StorageUnavailable(PatrolGateError):
    """Underlying storage could not be reached."""

    def __init__(self, detail: str = ""):
        super().__init__(
            f"Storage unavailable: {detail}" if detail else "Storage unavailable",
            "STORAGE_UNAVAILABLE",
        )
        self.detail = detail


class ChangeNotFound(PatrolGateError):
    """Change does not exist."""

    def __init__(self, change_id: int):
        super().__init__(f"Change not found: {change_id}", "CHANGE_NOT_FOUND")
        self.change_id = change_id


class InvalidToken(PatrolGateError):
    """Action token is missing, malformed or bound to another change."""

    def __init__(self, message: str = "Invalid action token"):
        super().__init__(message, "INVALID_TOKEN")
