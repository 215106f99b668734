# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/client/fake_partner_center_client.py

Cliente simulado de Partner Center (PROVISIONING_FAKE_MODE, solo desarrollo).

Responde carritos y checkouts exitosos con suscripciones ficticias para
que el flujo completo (persistir suscripciones, completar la orden) se
ejercite sin llamar a Microsoft.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import logging
import secrets
from decimal import Decimal
from typing import Any

from app.modules.provisioning.errors import BudgetResult

logger = logging.getLogger(__name__)


class FakePartnerCenterClient:
    def __init__(self) -> None:
        self._carts: dict[str, list[dict[str, Any]]] = {}
        self.budgets: list[tuple[str, Decimal]] = []

    async def get_token(self) -> str:
        return "fake-token"

    async def create_cart(self, customer_id: str, line_items: list[dict[str, Any]], token: str) -> dict[str, Any]:
        cart_id = f"fake-cart-{secrets.token_hex(6)}"
        self._carts[cart_id] = list(line_items)
        logger.info("fake_partner_center_cart_created customer=%s cart_id=%s", customer_id, cart_id)
        return {"id": cart_id, "lineItems": line_items}

    async def checkout(self, customer_id: str, cart_id: str, token: str) -> dict[str, Any]:
        line_items = self._carts.pop(cart_id, [])
        return {
            "orders": [
                {
                    "id": f"fake-order-{secrets.token_hex(6)}",
                    "lineItems": [
                        {
                            "lineItemNumber": item.get("id", index),
                            "offerId": item.get("catalogItemId", ""),
                            "subscriptionId": f"fake-sub-{secrets.token_hex(8)}",
                            "termDuration": item.get("termDuration", "P1M"),
                            "transactionType": "New",
                            "friendlyName": "Fake Product",
                            "quantity": item.get("quantity", 1),
                        }
                        for index, item in enumerate(line_items)
                    ],
                }
            ]
        }

    async def set_usage_budget(self, customer_id: str, amount: Decimal, token: str) -> BudgetResult:
        self.budgets.append((customer_id, amount))
        return BudgetResult(applied=True, amount=amount, http_status=200)


__all__ = ["FakePartnerCenterClient"]
# Fin del archivo backend/app/modules/provisioning/client/fake_partner_center_client.py
