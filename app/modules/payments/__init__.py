# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/__init__.py

Módulo de pagos de Readymarket (pasarela MITEC 3-D Secure).

Este módulo gestiona:
- Cifrado AES-128-CBC del protocolo y armado del formulario
- Sesiones de pago (correlación referencia -> carrito)
- Decodificación y conciliación del callback
- Superficie HTTP (checkout, callback, webhook interno)

Estructura:
- gateway: códec, builder, decoder y errores de transporte
- enums: PaymentResponseStatus, ResolutionPath, Currency
- models: PaymentSession, PaymentResponse
- repositories / services / routes / jobs

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from .enums import Currency, PaymentResponseStatus, ResolutionPath
from .models import PaymentResponse, PaymentSession

__all__ = [
    "Currency",
    "PaymentResponseStatus",
    "ResolutionPath",
    "PaymentSession",
    "PaymentResponse",
]

# Fin del archivo backend/app/modules/payments/__init__.py
