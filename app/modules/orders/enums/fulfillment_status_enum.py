# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/enums/fulfillment_status_enum.py

Seguimiento de entrega por partida y agregado por orden.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from enum import StrEnum
from typing import Iterable


class ItemFulfillmentStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    FAILED = "failed"


class OrderFulfillmentStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    FULFILLED = "fulfilled"
    PARTIALLY_FULFILLED = "partially_fulfilled"
    FAILED = "failed"

    @classmethod
    def aggregate(cls, item_statuses: Iterable[str]) -> "OrderFulfillmentStatus":
        """Deriva el estado de la orden a partir de sus partidas."""
        statuses = [ItemFulfillmentStatus(s) for s in item_statuses]
        if not statuses:
            return cls.PENDING
        fulfilled = sum(1 for s in statuses if s == ItemFulfillmentStatus.FULFILLED)
        if fulfilled == len(statuses):
            return cls.FULFILLED
        if fulfilled:
            return cls.PARTIALLY_FULFILLED
        if all(s == ItemFulfillmentStatus.FAILED for s in statuses):
            return cls.FAILED
        if any(s == ItemFulfillmentStatus.PROCESSING for s in statuses):
            return cls.PROCESSING
        if any(s == ItemFulfillmentStatus.FAILED for s in statuses):
            return cls.FAILED
        return cls.PENDING


__all__ = ["ItemFulfillmentStatus", "OrderFulfillmentStatus"]
