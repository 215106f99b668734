# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_dev.py

Overrides para entorno de DESARROLLO (dev) usando Pydantic v2.
Hereda de BaseAppSettings y ajusta únicamente valores del ambiente local.
La pasarela MITEC y Partner Center se configuran aparte
(settings_payments.py / settings_provisioning.py).

Autor: Ixchel Beristain
Fecha: 2026-10-06
"""

from pydantic_settings import SettingsConfigDict

from .settings_base import BaseAppSettings


class DevSettings(BaseAppSettings):
    """Configuración para entorno de desarrollo."""

    python_env: str = "development"

    # Logging legible en consola
    log_level: str = "DEBUG"
    log_format: str = "plain"

    # En desarrollo no se requiere SSL
    db_sslmode: str = "disable"

    # El scheduler local corre salvo que se desactive por env
    scheduler_enabled: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


__all__ = ["DevSettings"]

# Fin del archivo backend/app/shared/config/settings_dev.py
