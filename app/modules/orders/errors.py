# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/errors.py

Errores del módulo Orders.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""


class OrderMaterializationError(Exception):
    """La orden no puede materializarse (pago no aprobado, carrito ausente, vacío o ya convertido)."""

    def __init__(self, message: str, *, code: str = "materialization_error"):
        super().__init__(message)
        self.code = code


__all__ = ["OrderMaterializationError"]
