# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/services/__init__.py

Servicios del módulo Orders.
"""

from .order_materializer import MaterializationResult, OrderMaterializer, snapshot_item
from .order_number_service import format_order_number, next_order_number
from .payment_failure_service import CompensationResult, PaymentFailureService
from .purchase_confirmation_service import PurchaseConfirmationService

__all__ = [
    "OrderMaterializer",
    "MaterializationResult",
    "snapshot_item",
    "next_order_number",
    "format_order_number",
    "PaymentFailureService",
    "CompensationResult",
    "PurchaseConfirmationService",
]
