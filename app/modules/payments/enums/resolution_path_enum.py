# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/resolution_path_enum.py

Camino con el que el conciliador resolvió el carrito de un callback.
Se persiste en PaymentResponse.resolution_path para auditoría y para que
las pruebas distingan una coincidencia positiva del respaldo heurístico.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from enum import StrEnum


class ResolutionPath(StrEnum):
    EXACT_SESSION = "exact_session"
    PREFIX_SESSION = "prefix_session"
    CART_FALLBACK = "cart_fallback"
    UNRESOLVED = "unresolved"

    @property
    def is_positive_match(self) -> bool:
        return self in (ResolutionPath.EXACT_SESSION, ResolutionPath.PREFIX_SESSION)


__all__ = ["ResolutionPath"]

# Fin del archivo backend/app/modules/payments/enums/resolution_path_enum.py
