"""PatrolGate database layer."""

from patrolgate.db.base import Base, get_session, init_db
from patrolgate.db.tables import (
    ChangeTable,
    LeaseTable,
    PageTable,
    ReviewerTable,
    RevisionTable,
)

__all__ = [
    "Base",
    "get_session",
    "init_db",
    "ChangeTable",
    "LeaseTable",
    "PageTable",
    "ReviewerTable",
    "RevisionTable",
]
