# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/services/line_items.py

Mapeo de líneas de orden al formato de Partner Center y reglas de
crédito prepago.

- lineItem: {id, catalogItemId, quantity, billingCycle, termDuration?}
- termDuration se omite en crédito prepago (plazo P1M + "Prepago" en el título).
- Presupuesto = round(sum(cantidad prepago) * factor, 2).

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional, Sequence

from app.modules.orders.models import OrderItem
from app.modules.provisioning.errors import (
    ProvisioningError,
    ProvisioningErrorDetail,
    ProvisioningStep,
)

DEFAULT_BUDGET_FACTOR = Decimal("0.86")


def is_prepaid_credit(item: OrderItem, prepaid_term: str = "P1M", title_marker: str = "Prepago") -> bool:
    return item.term_duration == prepaid_term and title_marker in (item.title or "")


def build_line_items(
    items: Sequence[OrderItem],
    *,
    default_billing_cycle: str = "Monthly",
    prepaid_term: str = "P1M",
    title_marker: str = "Prepago",
) -> list[dict[str, Any]]:
    """El índice de cada lineItem (id) corresponde a la posición en `items`."""
    lines: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        if not (item.product_code and item.sku_id and item.availability_id):
            raise ProvisioningError(
                ProvisioningStep.PREPARE,
                ProvisioningErrorDetail(
                    message=f"Línea {item.id} sin catalogItemId válido",
                    error_type="invalid_product",
                ),
            )
        line: dict[str, Any] = {
            "id": index,
            "catalogItemId": item.catalog_item_id,
            "quantity": item.quantity,
            "billingCycle": item.billing_plan or default_billing_cycle,
        }
        if item.term_duration and not is_prepaid_credit(item, prepaid_term, title_marker):
            line["termDuration"] = item.term_duration
        lines.append(line)
    return lines


def compute_budget(
    items: Iterable[OrderItem],
    factor: Decimal = DEFAULT_BUDGET_FACTOR,
    *,
    prepaid_term: str = "P1M",
    title_marker: str = "Prepago",
) -> Optional[Decimal]:
    """None si no hay crédito prepago en la orden."""
    quantity = sum(
        item.quantity for item in items if is_prepaid_credit(item, prepaid_term, title_marker)
    )
    if not quantity:
        return None
    return budget_amount(quantity, factor)


def budget_amount(quantity: int | Decimal, factor: Decimal = DEFAULT_BUDGET_FACTOR) -> Decimal:
    return (Decimal(quantity) * factor).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def returned_line_items(checkout_response: dict[str, Any]) -> list[dict[str, Any]]:
    """Aplana orders[*].lineItems[*] de la respuesta de checkout."""
    result: list[dict[str, Any]] = []
    for order in checkout_response.get("orders") or []:
        result.extend(li for li in (order.get("lineItems") or []) if isinstance(li, dict))
    return result


def _offer_matches(item: OrderItem, offer_id: str) -> bool:
    if not offer_id:
        return False
    offer = offer_id.lower()
    candidates = (
        item.catalog_item_id.lower(),
        f"{item.product_code}:{item.sku_id}".lower(),
        item.sku_id.lower(),
    )
    return offer in candidates or offer.startswith(candidates[1] + ":")


def match_line_items(
    items: Sequence[OrderItem],
    returned: Sequence[dict[str, Any]],
) -> list[tuple[OrderItem, Optional[dict[str, Any]]]]:
    """
    Empareja cada línea de orden con la línea devuelta por el checkout:
    primero por lineItemNumber (= id enviado), luego por SKU del offerId.
    """
    pending = list(returned)
    pairs: list[tuple[OrderItem, Optional[dict[str, Any]]]] = []

    by_number: dict[int, dict[str, Any]] = {}
    for li in pending:
        number = li.get("lineItemNumber")
        if isinstance(number, int) and number not in by_number:
            by_number[number] = li

    for index, item in enumerate(items):
        match = by_number.get(index)
        if match is not None and match in pending and (
            not match.get("offerId") or _offer_matches(item, match["offerId"])
        ):
            pending.remove(match)
            pairs.append((item, match))
            continue

        match = next((li for li in pending if _offer_matches(item, li.get("offerId", ""))), None)
        if match is not None:
            pending.remove(match)
        pairs.append((item, match))

    return pairs


__all__ = [
    "DEFAULT_BUDGET_FACTOR",
    "is_prepaid_credit",
    "build_line_items",
    "compute_budget",
    "budget_amount",
    "returned_line_items",
    "match_line_items",
]
# Fin del archivo backend/app/modules/provisioning/services/line_items.py
