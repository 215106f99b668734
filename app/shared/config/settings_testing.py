# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_testing.py

Overrides para entorno de PRUEBAS (test) usando Pydantic v2.
Determinista: SQLite en memoria, sin scheduler, email en consola
y token interno fijo para los endpoints protegidos.

Autor: Ixchel Beristain
Fecha: 2026-10-06
"""

from typing import Optional

from pydantic import SecretStr
from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class EnvTestingSettings(BaseAppSettings):
    python_env: str = "test"

    # Menos ruido en test
    log_level: str = "WARNING"
    log_format: str = "pretty"

    # Base de datos aislada (los tests crean su propio engine aiosqlite)
    db_name: str = "readymarket_test"
    db_url: Optional[str] = "sqlite+aiosqlite:///:memory:"

    # Jobs en segundo plano desactivados
    scheduler_enabled: bool = False
    metrics_enabled: bool = False

    email_mode: str = "console"
    internal_service_token: Optional[SecretStr] = SecretStr("test-internal-token")

    model_config = SettingsConfigDict(
        env_file=".env.test",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["EnvTestingSettings"]
# Fin del archivo backend/app/shared/config/settings_testing.py
