# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/enums/order_status_enum.py

Estados de la orden. `status` (cumplimiento del pedido) y `payment_status`
(liquidación del cobro) son independientes.

No existe un estado terminal "failed": una orden pagada cuyo
aprovisionamiento falla permanece en PROCESSING y es reintentable.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from enum import StrEnum


class OrderStatus(StrEnum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderPaymentStatus(StrEnum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


__all__ = ["OrderStatus", "OrderPaymentStatus"]
