"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from gyanu.config import Settings


def test_jwt_secret_has_no_default(monkeypatch):
    monkeypatch.delenv("JWT_SECRET_KEY", raising=False)
    with pytest.raises(ValidationError) as exc:
        Settings(_env_file=None)
    assert "jwt_secret_key" in str(exc.value)


def test_jwt_secret_read_from_environment(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "from-env")
    assert Settings(_env_file=None).jwt_secret_key == "from-env"


def test_database_url_override_uses_async_driver():
    settings = Settings(
        _env_file=None,
        jwt_secret_key="x",
        database_url_override="postgres://u:p@db.example.com:5432/gyanu?sslmode=require",
    )
    assert settings.database_url == "postgresql+asyncpg://u:p@db.example.com:5432/gyanu"
    assert settings.database_requires_ssl is True
