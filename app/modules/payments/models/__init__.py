# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/__init__.py

Modelos ORM del módulo Payments (pasarela MITEC):
- PaymentSession: correlación referencia -> carrito
- PaymentResponse: callback recibido (idempotente por referencia)

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

from .payment_session_models import PaymentSession
from .payment_response_models import PaymentResponse

__all__ = ["PaymentSession", "PaymentResponse"]
