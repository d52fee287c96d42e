"""API dependencies."""

import logging
import secrets
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from patrolgate.auth.context import AuthContext
from patrolgate.config import Environment, settings
from patrolgate.db import base as db_base

logger = logging.getLogger("patrolgate.api")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with db_base.async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_reviewer_id(
    x_reviewer_id: str | None = Header(None, alias="X-Reviewer-ID"),
) -> str:
    """
    Extract the patroller identity from the request.

    The identity is asserted by the trusted front end that holds the API key.
    """
    if not x_reviewer_id or not x_reviewer_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Reviewer-ID header")
    return x_reviewer_id.strip()


async def verify_api_key(
    authorization: str | None = Header(None),
    x_api_key: str | None = Header(None, alias="X-API-Key"),
    reviewer_id: str = Depends(get_reviewer_id),
) -> AuthContext:
    """
    Verify the shared API key.

    Fails closed: with no key configured and no explicit insecure dev mode,
    every request is rejected.
    """
    if settings.allow_insecure_dev and settings.env == Environment.DEVELOPMENT:
        return AuthContext(reviewer_id=reviewer_id, auth_type="insecure_dev")

    api_key = None
    if authorization and authorization.startswith("Bearer "):
        api_key = authorization[7:]
    elif x_api_key:
        api_key = x_api_key

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing authorization. Use Authorization: Bearer <key> or X-API-Key header",
        )

    if not settings.api_key:
        logger.error("SECURITY VIOLATION: No API key configured. Set PATROLGATE_API_KEY.")
        raise HTTPException(
            status_code=503,
            detail="Server misconfigured: authentication not properly initialized",
        )

    if not secrets.compare_digest(api_key, settings.api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")

    return AuthContext(reviewer_id=reviewer_id, auth_type="api_key")


def validate_auth_config() -> None:
    """
    Validate authentication configuration at startup.

    Raises:
        RuntimeError: If configuration is insecure for the current environment
    """
    if settings.allow_insecure_dev and settings.env != Environment.DEVELOPMENT:
        raise RuntimeError(
            f"SECURITY ERROR: allow_insecure_dev=true is only permitted in development. "
            f"Current environment: {settings.env.value}. "
            f"Set PATROLGATE_ALLOW_INSECURE_DEV=false for {settings.env.value}."
        )

    if settings.env != Environment.DEVELOPMENT and settings.token_secret == "change-me":
        raise RuntimeError(
            f"SECURITY ERROR: PATROLGATE_TOKEN_SECRET must be set in {settings.env.value}."
        )

    if settings.allow_insecure_dev:
        logger.warning(
            "=" * 80 + "\n"
            "WARNING: Running in INSECURE DEV MODE\n"
            "  - API key authentication is DISABLED\n"
            "  - Reviewer identity is taken from X-Reviewer-ID as-is\n"
            "  - Set PATROLGATE_ALLOW_INSECURE_DEV=false for any deployment\n"
            + "=" * 80
        )
    else:
        logger.info(f"Authentication enabled: shared API key for {settings.env.value}")
