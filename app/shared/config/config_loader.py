# -*- coding: utf-8 -*-
"""
backend/app/shared/config/config_loader.py

Selecciona la clase de settings según PYTHON_ENV, corre las validaciones
de seguridad y cachea la instancia (singleton por proceso).

Valores desconocidos de PYTHON_ENV caen en desarrollo.

Autor: Ixchel Beristain
Actualizado: 2026-10-06
"""

from functools import lru_cache
import os

from .settings_base import BaseAppSettings
from .settings_dev import DevSettings
from .settings_testing import EnvTestingSettings
from .settings_prod import ProdSettings

_SETTINGS_BY_ENV: dict[str, type[BaseAppSettings]] = {
    "production": ProdSettings,
    "test": EnvTestingSettings,
    "development": DevSettings,
}


def current_env() -> str:
    """PYTHON_ENV normalizado (sin comillas, minúsculas)."""
    return os.getenv("PYTHON_ENV", "development").strip().strip('"').strip("'").lower()


@lru_cache(maxsize=1)
def get_settings() -> BaseAppSettings:
    """
    Devuelve la configuración del entorno actual.

    Raises:
        ValueError: Si las validaciones de seguridad fallan
            (p. ej. producción sin APP_SERVICE_TOKEN).
    """
    settings_cls = _SETTINGS_BY_ENV.get(current_env(), DevSettings)
    settings = settings_cls()
    settings._security_checks()
    return settings


__all__ = ["get_settings", "current_env"]
# Fin del archivo backend/app/shared/config/config_loader.py
