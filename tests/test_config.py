"""
Configuration and startup security checks.
"""

import pytest
from pydantic import ValidationError

from patrolgate.api import deps
from patrolgate.config import Environment, Settings, settings


def test_lease_defaults():
    assert settings.lease_ttl_seconds == 120
    assert settings.prune_odds == 500
    assert settings.lease_sweep_interval_seconds is None


def test_rejects_unsupported_database_url():
    with pytest.raises(ValidationError):
        Settings(database_url="mysql://localhost/patrol", allow_insecure_dev=True)


def test_accepts_sqlite_and_postgres_urls():
    for url in ("sqlite+aiosqlite:///patrol.db", "postgresql+asyncpg://u:p@h/db"):
        assert Settings(database_url=url, allow_insecure_dev=True).database_url == url


def test_api_key_required_in_production():
    with pytest.raises(ValidationError):
        Settings(env=Environment.PRODUCTION, api_key=None, _env_file=None)


def test_revert_reasons_from_json_string():
    parsed = Settings(revert_reasons='["spam", "test edit"]', allow_insecure_dev=True)

    assert parsed.revert_reasons == ["spam", "test edit"]
    assert Settings(revert_reasons="", allow_insecure_dev=True).revert_reasons == []


def test_ttl_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(lease_ttl_seconds=0, allow_insecure_dev=True)


def test_insecure_dev_refused_outside_development(monkeypatch):
    monkeypatch.setattr(settings, "allow_insecure_dev", True)
    monkeypatch.setattr(settings, "env", Environment.PRODUCTION)

    with pytest.raises(RuntimeError, match="allow_insecure_dev"):
        deps.validate_auth_config()


def test_default_token_secret_refused_outside_development(monkeypatch):
    monkeypatch.setattr(settings, "allow_insecure_dev", False)
    monkeypatch.setattr(settings, "env", Environment.STAGING)
    monkeypatch.setattr(settings, "token_secret", "change-me")

    with pytest.raises(RuntimeError, match="TOKEN_SECRET"):
        deps.validate_auth_config()
