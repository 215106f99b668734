# -*- coding: utf-8 -*-
import os

import pytest

import app.shared.config.config_loader as config_loader
import app.shared.config.settings_payments as settings_payments
import app.shared.config.settings_provisioning as settings_provisioning


@pytest.fixture(autouse=True)
def _isolate_env_and_cache(monkeypatch):
    """
    Aísla variables de entorno y limpia los singletons de configuración en cada test.
    """
    # No heredar secretos ni flags del shell del dev
    for k in list(os.environ.keys()):
        if k.startswith(("DB_", "MITEC_", "PARTNER_CENTER_", "PROVISIONING_", "NOTIFICATION_", "WHATSAPP_", "EMAIL_", "CORS_", "APP_", "LOG_")):
            monkeypatch.delenv(k, raising=False)
    monkeypatch.setenv("PYTHON_ENV", "development")

    config_loader.get_settings.cache_clear()
    settings_payments.reset_payments_settings()
    settings_provisioning.reset_provisioning_settings()

    yield

    config_loader.get_settings.cache_clear()
    settings_payments.reset_payments_settings()
    settings_provisioning.reset_provisioning_settings()
# Fin del archivo backend/tests/shared/config/conftest.py
