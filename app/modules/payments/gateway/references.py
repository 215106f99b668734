# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/gateway/references.py

Referencias de transacción: MKT{epoch en microsegundos}_{8 hex en mayúsculas}.
El sufijo aleatorio es lo que permite la búsqueda por prefijo cuando la
pasarela devuelve la referencia truncada o con sufijo propio.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from __future__ import annotations

import secrets
import time

REFERENCE_PREFIX = "MKT"


def generate_reference() -> str:
    micros = time.time_ns() // 1_000
    return f"{REFERENCE_PREFIX}{micros}_{secrets.token_hex(4).upper()}"


def reference_base(reference: str) -> str:
    """Parte previa al primer '_' (clave de la búsqueda por prefijo)."""
    return reference.split("_", 1)[0]


__all__ = ["REFERENCE_PREFIX", "generate_reference", "reference_base"]
