# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/currency_enum.py

Monedas aceptadas por la pasarela (valor tal cual viaja en tx_currency).

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from enum import StrEnum


class Currency(StrEnum):
    """Moneda operativa para cobros."""

    MXN = "MXN"
    USD = "USD"


__all__ = ["Currency"]

# Fin del archivo backend/app/modules/payments/enums/currency_enum.py
