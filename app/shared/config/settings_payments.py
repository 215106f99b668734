# -*- coding: utf-8 -*-
"""
backend/app/shared/config/settings_payments.py

Configuración de la pasarela de pagos MITEC (3-D Secure) para Readymarket.

Descripción:
    Centraliza credenciales del comercio, llave AES, URLs del formulario
    3DS y de respuesta, límites de monto, TTL de sesiones de pago y
    la ventana de búsqueda del carrito de respaldo.
    Las variables de entorno coinciden con el nombre del campo
    (MITEC_KEY_HEX, MITEC_ID_COMPANY, ...).

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

from __future__ import annotations

import os
from decimal import Decimal
from typing import Optional
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentsSettings(BaseSettings):
    """Configuración de la integración MITEC."""

    # =========================================================================
    # CREDENCIALES DEL COMERCIO
    # =========================================================================

    mitec_key_hex: SecretStr = Field(
        default=SecretStr(""),
        description="Llave AES-128 en hexadecimal (32 caracteres) entregada por MITEC"
    )

    mitec_id_company: str = Field(
        default="",
        description="Identificador de compañía (bs_idCompany)"
    )

    mitec_id_branch: str = Field(
        default="1",
        description="Identificador de sucursal (bs_idBranch)"
    )

    mitec_country: str = Field(
        default="MEX",
        description="País del comercio (bs_country)"
    )

    mitec_user: str = Field(
        default="",
        description="Usuario del comercio (bs_user)"
    )

    mitec_password: SecretStr = Field(
        default=SecretStr(""),
        description="Contraseña del comercio (bs_pwd)"
    )

    mitec_data0: str = Field(
        default="",
        description="Identificador en claro que acompaña al payload cifrado (<data0>)"
    )

    mitec_merchant: str = Field(
        default="",
        description="Afiliación del comercio (tx_merchant)"
    )

    # =========================================================================
    # URLS
    # =========================================================================

    mitec_3ds_url: str = Field(
        default="https://vip.e-pago.com.mx/ws3dsecure/Auth3dsecure",
        description="Endpoint POST del formulario 3-D Secure"
    )

    mitec_response_url: str = Field(
        default="http://localhost:8000/api/payments/mitec/callback",
        description="URL de respuesta (tx_urlResponse); se le agrega ?token=<referencia>"
    )

    frontend_url: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="URL base del frontend para la página de resultado del pago"
    )

    @field_validator("frontend_url", mode="before")
    @classmethod
    def _load_frontend_url(cls, v: Optional[str]) -> Optional[str]:
        """Fallback a FRONTEND_URL o FRONTEND_BASE_URL."""
        if v:
            return v
        return os.getenv("FRONTEND_URL") or os.getenv("FRONTEND_BASE_URL") or "http://localhost:5173"

    # =========================================================================
    # TRANSACCIÓN
    # =========================================================================

    mitec_default_currency: str = Field(
        default="MXN",
        description="Moneda por defecto (tx_currency)"
    )

    mitec_tx_cobro: str = Field(
        default="1",
        description="Tipo de cobro (tx_cobro); '1' = contado"
    )

    mitec_browser_ip_fallback: str = Field(
        default="127.0.0.1",
        description="IP usada en tx_browserIP cuando no se conoce la del cliente"
    )

    min_payment_amount: Decimal = Field(
        default=Decimal("0.01"),
        description="Monto mínimo aceptado por la pasarela"
    )

    max_payment_amount: Decimal = Field(
        default=Decimal("999999.99"),
        description="Monto máximo aceptado por la pasarela"
    )

    # =========================================================================
    # SESIONES Y CONCILIACIÓN
    # =========================================================================

    payment_session_ttl_minutes: int = Field(
        default=10,
        description="Vida de la sesión de pago (correlación referencia -> carrito)"
    )

    payment_session_cleanup_minutes: int = Field(
        default=15,
        description="Intervalo del job que borra sesiones expiradas"
    )

    cart_fallback_lookback_hours: int = Field(
        default=6,
        description="Ventana para el carrito de respaldo cuando no hay sesión"
    )

    # =========================================================================
    # SEGURIDAD
    # =========================================================================

    mitec_allow_synthetic_callbacks: bool = Field(
        default=False,
        description="Acepta callbacks simulados (fake_mode=1). Nunca en producción"
    )

    mitec_simulate_gateway: bool = Field(
        default=False,
        description="El checkout publica un callback simulado en lugar de ir a MITEC. Nunca en producción"
    )

    @field_validator("mitec_allow_synthetic_callbacks", "mitec_simulate_gateway", mode="after")
    @classmethod
    def _never_synthetic_in_prod(cls, v: bool) -> bool:
        if os.getenv("PYTHON_ENV", "development").lower() == "production":
            return False
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton global
_payments_settings: Optional[PaymentsSettings] = None


def get_payments_settings() -> PaymentsSettings:
    """Obtiene la instancia global de configuración de pagos."""
    global _payments_settings
    if _payments_settings is None:
        _payments_settings = PaymentsSettings()
    return _payments_settings


def reset_payments_settings() -> None:
    """Descarta el singleton (tests que cambian variables de entorno)."""
    global _payments_settings
    _payments_settings = None


__all__ = [
    "PaymentsSettings",
    "get_payments_settings",
    "reset_payments_settings",
]
# Fin del archivo backend/app/shared/config/settings_payments.py
