# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/errors.py

Errores tipados del aprovisionamiento en Partner Center.

Cada paso del cliente devuelve datos o lanza ProvisioningError con un
ProvisioningErrorDetail inmutable; el detalle viaja en la excepción hasta
el llamador (retry service, job, CLI), nunca en estado compartido.

El paso de presupuesto no lanza: devuelve un BudgetResult.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, Optional

RAW_RESPONSE_LIMIT = 2000


class ProvisioningStep(StrEnum):
    TOKEN = "token"
    PREPARE = "prepare"
    CREATE_CART = "create_cart"
    CHECKOUT = "checkout"
    PERSIST_SUBSCRIPTIONS = "persist_subscriptions"


@dataclass(frozen=True, slots=True)
class ProvisioningErrorDetail:
    """Contexto estructurado de un fallo del proveedor."""

    message: str
    error_type: str = "microsoft_partner_center"
    http_status: Optional[int] = None
    error_code: Optional[str] = None
    description: Optional[str] = None
    correlation_id: Optional[str] = None
    request_id: Optional[str] = None
    endpoint: Optional[str] = None
    raw_response: Optional[str] = None

    def __post_init__(self) -> None:
        if self.raw_response and len(self.raw_response) > RAW_RESPONSE_LIMIT:
            object.__setattr__(self, "raw_response", self.raw_response[:RAW_RESPONSE_LIMIT])

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ProvisioningError(Exception):
    """Fallo en un paso del aprovisionamiento. La orden queda reintentable."""

    def __init__(self, step: ProvisioningStep | str, detail: ProvisioningErrorDetail):
        super().__init__(detail.message)
        self.step = ProvisioningStep(step)
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        data = self.detail.to_dict()
        data["step"] = self.step.value
        return data

    def __str__(self) -> str:
        parts = [f"[{self.step.value}] {self.detail.message}"]
        if self.detail.http_status is not None:
            parts.append(f"http={self.detail.http_status}")
        if self.detail.error_code:
            parts.append(f"code={self.detail.error_code}")
        return " ".join(parts)


class OrderNotEligibleError(Exception):
    """La orden no existe, no está pagada o fue cancelada; no se intenta aprovisionar."""

    def __init__(self, order_id: int, reason: str):
        super().__init__(f"Orden {order_id} no elegible: {reason}")
        self.order_id = order_id
        self.reason = reason


@dataclass(frozen=True, slots=True)
class BudgetResult:
    """Resultado del PATCH usagebudget (no fatal)."""

    applied: bool
    amount: Decimal
    http_status: Optional[int] = None
    error: Optional[str] = None


__all__ = [
    "ProvisioningStep",
    "ProvisioningErrorDetail",
    "ProvisioningError",
    "BudgetResult",
    "OrderNotEligibleError",
]
# Fin del archivo backend/app/modules/provisioning/errors.py
