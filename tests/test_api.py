"""
HTTP API tests for the patrol endpoint.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from patrolgate.db.repositories import LeaseRepository, SqlChangeSource
from patrolgate.engine import StorageUnavailable


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/v1/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_config(client: AsyncClient):
    response = await client.get("/v1/config", headers={"X-Reviewer-ID": "bob"})

    assert response.status_code == 200
    assert response.json()["lease_ttl_seconds"] == 120


@pytest.mark.asyncio
async def test_patrol_requires_reviewer_header(client: AsyncClient):
    response = await client.post("/v1/patrol", json={})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_patrol_without_right_is_forbidden(client: AsyncClient):
    response = await client.post("/v1/patrol", json={}, headers={"X-Reviewer-ID": "eve"})

    assert response.status_code == 403
    body = response.json()
    assert body["state"] == "permission_error"
    assert body["reason"] == "permission"


@pytest.mark.asyncio
async def test_patrol_round_trip(client: AsyncClient, source: SqlChangeSource, make_edit, session):
    await source.upsert_reviewer("bob", can_patrol=True)
    change = await make_edit()
    await session.commit()
    headers = {"X-Reviewer-ID": "bob"}

    response = await client.post("/v1/patrol", json={}, headers=headers)
    assert response.status_code == 200
    presented = response.json()
    assert presented["state"] == "presented"
    assert presented["change"]["change_id"] == change.change_id

    lease = await client.get(f"/v1/leases/{change.change_id}", headers=headers)
    assert lease.json()["live"] is True

    response = await client.post(
        "/v1/patrol",
        json={
            "token": presented["token"],
            "change_id": change.change_id,
            "action": "endorse",
            "another": True,
        },
        headers=headers,
    )
    body = response.json()
    assert body["state"] == "empty"
    assert body["outcome"] == "endorsed"


@pytest.mark.asyncio
async def test_unclaimed_lease_lookup(client: AsyncClient):
    response = await client.get("/v1/leases/5", headers={"X-Reviewer-ID": "bob"})

    assert response.status_code == 200
    assert response.json() == {"change_id": 5, "claimed_at": None, "live": False}


@pytest.mark.asyncio
async def test_patrol_storage_failure_is_503(
    client: AsyncClient, source: SqlChangeSource, make_edit, session, monkeypatch
):
    await source.upsert_reviewer("bob", can_patrol=True)
    await make_edit()
    await session.commit()
    monkeypatch.setattr(
        LeaseRepository,
        "try_acquire",
        AsyncMock(side_effect=StorageUnavailable("connection refused")),
    )

    response = await client.post("/v1/patrol", json={}, headers={"X-Reviewer-ID": "bob"})

    assert response.status_code == 503
    assert "Storage unavailable" in response.json()["detail"]
