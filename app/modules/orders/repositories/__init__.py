# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/repositories/__init__.py

Repositorios del módulo Orders.
"""

from .cart_repository import CartRepository, active_items
from .order_repository import OrderRepository

__all__ = ["CartRepository", "OrderRepository", "active_items"]
