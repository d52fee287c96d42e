"""
Pytest fixtures for PatrolGate tests.
"""

import os
import random

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Ensure test config is set before importing patrolgate modules.
os.environ.setdefault("PATROLGATE_ALLOW_INSECURE_DEV", "true")
os.environ.setdefault("PATROLGATE_ENV", "development")
os.environ.setdefault("PATROLGATE_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from patrolgate.db.base import Base
from patrolgate.db.repositories import LeaseRepository, SqlChangeSource
import patrolgate.db.tables  # noqa: F401


def _ensure_test_database_url(database_url: str) -> None:
    if "test" not in database_url:
        raise RuntimeError(
            "Refusing to run PatrolGate tests against a non-test database. "
            "Set PATROLGATE_TEST_DATABASE_URL to a dedicated test database."
        )


class FixedRoll(random.Random):
    """Random source whose randrange always returns the same value."""

    def __init__(self, value: int):
        super().__init__()
        self.value = value

    def randrange(self, *args, **kwargs):
        return self.value


@pytest.fixture
async def engine(tmp_path):
    """Create a test engine and wire it into patrolgate.db.base."""
    database_url = os.getenv(
        "PATROLGATE_TEST_DATABASE_URL",
        f"sqlite+aiosqlite:///{tmp_path / 'patrolgate_test.db'}",
    )
    _ensure_test_database_url(database_url)
    engine = create_async_engine(database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    # Override global engine/session factory for dependency injection.
    from patrolgate.db import base as db_base

    original = (db_base.engine, db_base.async_session_factory)
    db_base.engine = engine
    db_base.async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    yield engine

    db_base.engine, db_base.async_session_factory = original
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    """Provide a database session per test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def source(session) -> SqlChangeSource:
    return SqlChangeSource(session, latest_revision_only=False)


@pytest.fixture
def leases(session) -> LeaseRepository:
    return LeaseRepository(session, ttl_seconds=120)


@pytest.fixture
def make_edit(source):
    """Create a page by ``creator`` and an edit on it by ``actor``."""
    counter = {"n": 0}

    async def _make_edit(actor: str = "mallory", is_bot: bool = False, **kwargs):
        counter["n"] += 1
        created = await source.create_page(
            f"Page {counter['n']}", "original text", actor_id="creator"
        )
        return await source.record_edit(
            created.page_id, "vandalised text", actor, is_bot=is_bot, **kwargs
        )

    return _make_edit


@pytest.fixture
async def client(session):
    """Async test client with overridden dependencies."""
    from patrolgate.api.deps import get_db_session
    from patrolgate.main import app

    async def override_get_db_session():
        yield session
        await session.commit()

    app.dependency_overrides[get_db_session] = override_get_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
