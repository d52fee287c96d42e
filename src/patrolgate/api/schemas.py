"""API request/response schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ConfigResponse(BaseModel):
    """Patrol queue settings visible to clients."""

    lease_ttl_seconds: int = Field(..., description="Claim lifetime")
    prune_odds: int = Field(..., description="One in N turns evicts stale leases")
    latest_revision_only: bool
    revert_reasons: list[str] = Field(default_factory=list)


class LeaseResponse(BaseModel):
    """Claim state of one change."""

    change_id: int
    claimed_at: Optional[datetime] = None
    live: bool = False
