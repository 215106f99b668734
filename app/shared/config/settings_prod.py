# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_prod.py

Overrides para PRODUCCIÓN (Pydantic v2).
Solo variables de entorno / secret stores (sin .env), logging JSON,
TLS obligatorio hacia Postgres y jobs de limpieza y reintento activos.

Los flags de pasarela simulada y Partner Center falso se fuerzan a False
en settings_payments / settings_provisioning cuando PYTHON_ENV=production.

Autor: Ixchel Beristain
Fecha: 2026-10-06
"""

from typing import Literal

from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class ProdSettings(BaseAppSettings):
    python_env: Literal["development", "test", "production"] = "production"

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "pretty", "plain"] = "json"

    debug: bool = False
    db_echo_sql: bool = False
    db_sslmode: str = "require"

    scheduler_enabled: bool = True

    # _security_checks() exige además APP_SERVICE_TOKEN
    model_config = SettingsConfigDict(
        env_file=None,
        extra="ignore",
    )


__all__ = ["ProdSettings"]
# Fin del archivo backend/app/shared/config/settings_prod.py
