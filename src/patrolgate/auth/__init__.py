"""PatrolGate request authentication and action tokens."""

from patrolgate.auth.context import AuthContext
from patrolgate.auth.tokens import issue_action_token, verify_action_token

__all__ = ["AuthContext", "issue_action_token", "verify_action_token"]
