# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/enums/cart_status_enum.py

Ciclo de vida del carrito: active -> converted | abandoned.
Un carrito convertido queda como evidencia de solo lectura; nunca se borra.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from enum import StrEnum


class CartStatus(StrEnum):
    ACTIVE = "active"
    CONVERTED = "converted"
    ABANDONED = "abandoned"


class CartItemStatus(StrEnum):
    ACTIVE = "active"
    REMOVED = "removed"


__all__ = ["CartStatus", "CartItemStatus"]
