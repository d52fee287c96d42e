"""REST API router."""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from patrolgate import __version__
from patrolgate.api.deps import get_db_session, verify_api_key
from patrolgate.api.schemas import ConfigResponse, HealthResponse, LeaseResponse
from patrolgate.auth.context import AuthContext
from patrolgate.config import settings
from patrolgate.db.repositories import LeaseRepository
from patrolgate.engine import StorageUnavailable
from patrolgate.engine.session import PatrolSession
from patrolgate.models import PatrolRequest, PermissionErrorResult, SessionResult

router = APIRouter(prefix="/v1")


# ============================================================================
# Health & Config
# ============================================================================


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@router.get("/config", response_model=ConfigResponse)
async def get_config(auth: AuthContext = Depends(verify_api_key)):
    """Get patrol queue configuration."""
    return ConfigResponse(
        lease_ttl_seconds=settings.lease_ttl_seconds,
        prune_odds=settings.prune_odds,
        latest_revision_only=settings.latest_revision_only,
        revert_reasons=settings.revert_reasons,
    )


# ============================================================================
# Patrol
# ============================================================================


@router.post("/patrol", response_model=SessionResult)
async def patrol(
    request: PatrolRequest,
    response: Response,
    auth: AuthContext = Depends(verify_api_key),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Run one patrol turn.

    Applies the submitted action (if the token matches), then either stops
    or hands the reviewer the next change along with a fresh token.
    """
    try:
        result = await PatrolSession.for_session(session).begin_session(auth.reviewer_id, request)
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    if isinstance(result, PermissionErrorResult):
        response.status_code = 403
    return result


@router.get("/leases/{change_id}", response_model=LeaseResponse)
async def get_lease(
    change_id: int,
    auth: AuthContext = Depends(verify_api_key),
    session: AsyncSession = Depends(get_db_session),
):
    """Inspect the claim on a change."""
    leases = LeaseRepository(session)
    try:
        lease = await leases.get(change_id)
    except StorageUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    if lease is None:
        return LeaseResponse(change_id=change_id)
    return LeaseResponse(
        change_id=change_id,
        claimed_at=lease.claimed_at,
        live=lease.is_live(leases.ttl_seconds),
    )
