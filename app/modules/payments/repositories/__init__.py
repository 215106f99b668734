# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/__init__.py

Repositorios del módulo Payments.
"""

from .payment_session_repository import PaymentSessionRepository
from .payment_response_repository import PaymentResponseRepository

__all__ = ["PaymentSessionRepository", "PaymentResponseRepository"]
