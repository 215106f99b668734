# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/__init__.py

Superficie de exportación de enums del módulo Payments.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from .currency_enum import Currency
from .payment_response_status_enum import PaymentResponseStatus
from .resolution_path_enum import ResolutionPath

__all__ = [
    "Currency",
    "PaymentResponseStatus",
    "ResolutionPath",
]

# Fin del archivo backend/app/modules/payments/enums/__init__.py
