# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_provisioning.py

Configuración del aprovisionamiento de licencias (Partner Center) y de las
alertas operativas asociadas (correo + WhatsApp).

Timeouts por llamada: token 30s, crear carrito 120s, checkout 180s,
presupuesto 90s. Ninguna llamada externa queda sin límite.

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Optional
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProvisioningSettings(BaseSettings):
    """Configuración de Partner Center y del reintento de aprovisionamiento."""

    # =========================================================================
    # PARTNER CENTER
    # =========================================================================

    partner_center_base_url: str = Field(
        default="https://api.partnercenter.microsoft.com/v1",
        description="URL base de la API de Partner Center"
    )

    partner_center_token_url: str = Field(
        default="",
        description="Endpoint GET que entrega el bearer token ({'item': {'token': ...}})"
    )

    partner_center_token_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Credencial enviada al endpoint de token (header x-api-key)"
    )

    token_cache_ttl_seconds: int = Field(
        default=3000,
        description="Vida del token en caché (compartida vía Redis si está disponible)"
    )

    # =========================================================================
    # TIMEOUTS
    # =========================================================================

    token_timeout_seconds: float = Field(default=30.0, description="Timeout de obtención de token")
    create_cart_timeout_seconds: float = Field(default=120.0, description="Timeout de creación de carrito")
    checkout_timeout_seconds: float = Field(default=180.0, description="Timeout de checkout")
    budget_timeout_seconds: float = Field(default=90.0, description="Timeout del PATCH de presupuesto")

    # =========================================================================
    # REGLAS DE NEGOCIO
    # =========================================================================

    budget_factor: Decimal = Field(
        default=Decimal("0.86"),
        description="Factor aplicado a la cantidad de crédito prepago para el presupuesto"
    )

    prepaid_title_marker: str = Field(
        default="Prepago",
        description="Texto en el título que identifica un producto de crédito prepago"
    )

    prepaid_term: str = Field(
        default="P1M",
        description="Plazo que acompaña a los productos de crédito prepago"
    )

    default_billing_cycle: str = Field(
        default="Monthly",
        description="Ciclo de facturación cuando el producto no define uno"
    )

    # =========================================================================
    # REINTENTOS
    # =========================================================================

    provisioning_max_auto_attempts: int = Field(
        default=5,
        description="Intentos automáticos máximos; el reintento manual ignora el límite"
    )

    provisioning_retry_interval_minutes: int = Field(
        default=30,
        description="Intervalo del job de reintento automático"
    )

    provisioning_retry_batch_size: int = Field(
        default=20,
        description="Órdenes procesadas por corrida del job"
    )

    provisioning_lease_seconds: int = Field(
        default=600,
        description="Duración del candado de base de datos por intento"
    )

    provisioning_fake_mode: bool = Field(
        default=False,
        description="Simula carrito/checkout de Partner Center (solo desarrollo)"
    )

    @field_validator("provisioning_fake_mode", mode="after")
    @classmethod
    def _never_fake_in_prod(cls, v: bool) -> bool:
        if os.getenv("PYTHON_ENV", "development").lower() == "production":
            return False
        return v

    # =========================================================================
    # NOTIFICACIONES OPERATIVAS
    # =========================================================================

    notification_emails: str = Field(
        default="",
        description="Destinatarios de correo separados por coma"
    )

    notification_whatsapp_numbers: str = Field(
        default="",
        description="Números de WhatsApp separados por coma (formato internacional)"
    )

    whatsapp_api_url: str = Field(
        default="https://graph.facebook.com/v18.0",
        description="URL base de la Graph API"
    )

    whatsapp_token: Optional[SecretStr] = Field(
        default=None,
        description="Token de acceso de la Graph API"
    )

    whatsapp_phone_id: str = Field(
        default="",
        description="Phone number id emisor"
    )

    whatsapp_template_name: str = Field(
        default="alerta_pedido",
        description="Plantilla aprobada para alertas"
    )

    whatsapp_timeout_seconds: float = Field(default=15.0, description="Timeout por mensaje")

    def email_recipients(self) -> list[str]:
        return [e.strip() for e in self.notification_emails.split(",") if e.strip()]

    def whatsapp_recipients(self) -> list[str]:
        return [n.strip() for n in self.notification_whatsapp_numbers.split(",") if n.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


_provisioning_settings: Optional[ProvisioningSettings] = None


def get_provisioning_settings() -> ProvisioningSettings:
    """Obtiene la instancia global de configuración de aprovisionamiento."""
    global _provisioning_settings
    if _provisioning_settings is None:
        _provisioning_settings = ProvisioningSettings()
    return _provisioning_settings


def reset_provisioning_settings() -> None:
    global _provisioning_settings
    _provisioning_settings = None


__all__ = [
    "ProvisioningSettings",
    "get_provisioning_settings",
    "reset_provisioning_settings",
]
# Fin del archivo backend/app/shared/config/settings_provisioning.py
