# -*- coding: utf-8 -*-
"""
backend/tests/shared/config/test_config_loader.py

Selección de settings por PYTHON_ENV y validaciones de seguridad.
"""

import pytest

from app.shared.config.config_loader import get_settings
from app.shared.config.settings_dev import DevSettings
from app.shared.config.settings_prod import ProdSettings
from app.shared.config.settings_testing import EnvTestingSettings


def test_development_by_default():
    settings = get_settings()
    assert isinstance(settings, DevSettings)
    assert settings.is_dev is True
    assert settings.db_sslmode == "disable"


def test_test_env(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "test")
    settings = get_settings()
    assert isinstance(settings, EnvTestingSettings)
    assert settings.scheduler_enabled is False
    assert settings.database_url.startswith("sqlite+aiosqlite")
    assert settings.internal_service_token.get_secret_value() == "test-internal-token"


def test_settings_are_cached():
    assert get_settings() is get_settings()


def test_production_requires_service_token(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "production")
    with pytest.raises(ValueError, match="APP_SERVICE_TOKEN"):
        get_settings()


def test_production_requires_ssl(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "production")
    monkeypatch.setenv("APP_SERVICE_TOKEN", "s3cret")
    monkeypatch.setenv("DB_SSLMODE", "disable")
    with pytest.raises(ValueError, match="DB_SSLMODE"):
        get_settings()


def test_production_ok(monkeypatch):
    monkeypatch.setenv("PYTHON_ENV", "production")
    monkeypatch.setenv("APP_SERVICE_TOKEN", "s3cret")
    settings = get_settings()
    assert isinstance(settings, ProdSettings)
    assert settings.log_format == "json"


def test_email_api_mode_requires_mailersend(monkeypatch):
    monkeypatch.setenv("EMAIL_MODE", "api")
    with pytest.raises(ValueError, match="MAILERSEND"):
        get_settings()


def test_database_url_normalizes_scheme(monkeypatch):
    monkeypatch.setenv("DB_URL", "postgres://u:p@db:5432/readymarket")
    assert get_settings().database_url == "postgresql+asyncpg://u:p@db:5432/readymarket"
# Fin del archivo backend/tests/shared/config/test_config_loader.py
