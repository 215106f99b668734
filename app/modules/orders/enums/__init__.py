# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/enums/__init__.py

Enums del módulo Orders.
"""

from .cart_status_enum import CartItemStatus, CartStatus
from .fulfillment_status_enum import ItemFulfillmentStatus, OrderFulfillmentStatus
from .order_status_enum import OrderPaymentStatus, OrderStatus

__all__ = [
    "CartStatus",
    "CartItemStatus",
    "OrderStatus",
    "OrderPaymentStatus",
    "ItemFulfillmentStatus",
    "OrderFulfillmentStatus",
]
