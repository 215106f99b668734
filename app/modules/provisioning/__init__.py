# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/__init__.py

Módulo Provisioning: alta de suscripciones en Microsoft Partner Center
para órdenes pagadas, con reintento acotado y notificación al operador.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from .errors import (
    BudgetResult,
    OrderNotEligibleError,
    ProvisioningError,
    ProvisioningErrorDetail,
    ProvisioningStep,
)

__all__ = [
    "ProvisioningError",
    "ProvisioningErrorDetail",
    "ProvisioningStep",
    "OrderNotEligibleError",
    "BudgetResult",
]
