# -*- coding: utf-8 -*-
"""
backend/app/shared/config/__init__.py

Punto único de acceso a la configuración:
    from app.shared.config import settings

`settings` es un proxy perezoso: no instancia nada al importar
(evita validaciones prematuras en tests) y delega en get_settings().
Los settings de pasarela y aprovisionamiento se obtienen con
get_payments_settings() / get_provisioning_settings().
"""

from __future__ import annotations

from typing import Any

from .config_loader import get_settings
from .settings_payments import PaymentsSettings, get_payments_settings
from .settings_provisioning import ProvisioningSettings, get_provisioning_settings


class _SettingsProxy:
    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        return getattr(get_settings(), name)

    def __repr__(self) -> str:
        return f"<SettingsProxy env={get_settings().python_env}>"


settings = _SettingsProxy()

__all__ = [
    "settings",
    "get_settings",
    "PaymentsSettings",
    "get_payments_settings",
    "ProvisioningSettings",
    "get_provisioning_settings",
]
# Fin del archivo
