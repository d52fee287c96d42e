"""Action tokens binding a submitted form to a reviewer and a change."""

import hashlib
import hmac
import secrets

from patrolgate.config import settings
from patrolgate.engine.errors import InvalidToken


def _signature(reviewer_id: str, change_id: int, secret: str) -> str:
    message = f"{reviewer_id}\x00{change_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def issue_action_token(reviewer_id: str, change_id: int, secret: str | None = None) -> str:
    """Token handed out with a presented change."""
    return _signature(reviewer_id, change_id, secret or settings.token_secret)


def verify_action_token(
    token: str | None,
    reviewer_id: str,
    change_id: int | None,
    secret: str | None = None,
) -> None:
    """Raise InvalidToken unless ``token`` was issued for this reviewer and change."""
    if not token or change_id is None:
        raise InvalidToken("Missing action token or change id")

    expected = _signature(reviewer_id, change_id, secret or settings.token_secret)
    if not secrets.compare_digest(token, expected):
        raise InvalidToken(f"Action token does not match change {change_id}")
