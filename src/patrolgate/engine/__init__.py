"""PatrolGate engine - claim coordination and patrol actions."""

from patrolgate.engine.errors import (
    ChangeNotFound,
    InvalidToken,
    PatrolGateError,
    PermissionDenied,
    ReviewerRestricted,
    StorageUnavailable,
)
from patrolgate.engine.source import ChangeSource

__all__ = [
    "ChangeNotFound",
    "ChangeSource",
    "InvalidToken",
    "PatrolGateError",
    "PermissionDenied",
    "ReviewerRestricted",
    "StorageUnavailable",
]
