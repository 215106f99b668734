# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/gateway/errors.py

Taxonomía de errores de la capa de transporte con MITEC.

Estos errores son técnicos (payload ilegible, llave inválida, XML roto);
un rechazo del banco NO es un error: se modela como PaymentResponse con
payment_status="error". La ruta del callback captura GatewayError,
registra el evento y redirige al cliente a la página de resultado.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from __future__ import annotations


class GatewayError(Exception):
    """Base de errores de la integración con la pasarela."""

    code: str = "gateway_error"

    def __init__(self, message: str = "", *, raw_excerpt: str | None = None):
        super().__init__(message or self.code)
        self.raw_excerpt = raw_excerpt


class InvalidGatewayKeyError(GatewayError):
    """La llave configurada no es hex válido o no mide 16 bytes."""

    code = "invalid_gateway_key"


class MalformedPayloadError(GatewayError):
    """El payload no es base64 válido o es más corto que el IV."""

    code = "malformed_payload"


class DecryptionFailedError(GatewayError):
    """AES rechazó el ciphertext o el padding PKCS#7."""

    code = "decryption_failed"


class MalformedXmlError(GatewayError):
    """El texto descifrado no produce ningún árbol XML."""

    code = "malformed_xml"


class SyntheticCallbackRejectedError(GatewayError):
    """Llegó un callback simulado (fake_mode=1) sin estar permitido."""

    code = "synthetic_callback_rejected"


def truncate_payload(raw: str | bytes | None, limit: int = 64) -> str:
    """Extracto seguro para logs: nunca más de `limit` caracteres."""
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        raw = raw.decode("latin-1")
    return raw[:limit]


__all__ = [
    "GatewayError",
    "InvalidGatewayKeyError",
    "MalformedPayloadError",
    "DecryptionFailedError",
    "MalformedXmlError",
    "SyntheticCallbackRejectedError",
    "truncate_payload",
]
# Fin del archivo backend/app/modules/payments/gateway/errors.py
