# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/models/__init__.py

Modelos ORM del módulo Orders: catálogo, carritos y órdenes.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

from .catalog_models import Category, Product
from .cart_models import Cart, CartItem
from .order_models import Order, OrderItem, OrderNumberSequence

__all__ = [
    "Category",
    "Product",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderNumberSequence",
]
