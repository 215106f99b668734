# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/__init__.py

Superficie de exportación de servicios del módulo Payments.

Incluye:
- CheckoutService (inicio del pago y PaymentSession)
- ReconciliationService (callback -> PaymentResponse)
- CallbackService (conciliación + orden + compensación)

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from .checkout_service import CheckoutError, CheckoutResult, CheckoutService
from .reconciliation_service import ReconciliationResult, ReconciliationService, Resolution
from .callback_service import CallbackOutcome, CallbackService, decoded_from_parsed

__all__ = [
    "CheckoutService",
    "CheckoutResult",
    "CheckoutError",
    "ReconciliationService",
    "ReconciliationResult",
    "Resolution",
    "CallbackService",
    "CallbackOutcome",
    "decoded_from_parsed",
]

# Fin del archivo backend/app/modules/payments/services/__init__.py
