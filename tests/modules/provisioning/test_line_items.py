# backend/tests/modules/provisioning/test_line_items.py
# -*- coding: utf-8 -*-
"""
Tests del mapeo de líneas a Partner Center y del presupuesto prepago.

Cubre:
- lineItem {id, catalogItemId, quantity, billingCycle, termDuration}
- termDuration omitido en crédito prepago (P1M + "Prepago")
- Presupuesto = round(cantidad * 0.86, 2)
- Emparejamiento de lineItems devueltos por número y por offerId
"""

from decimal import Decimal

import pytest

from app.modules.orders.models import OrderItem
from app.modules.provisioning.errors import ProvisioningError, ProvisioningStep
from app.modules.provisioning.services import (
    budget_amount,
    build_line_items,
    compute_budget,
    is_prepaid_credit,
    match_line_items,
)
from app.modules.provisioning.services.line_items import returned_line_items


def order_item(
    sku: str,
    *,
    title: str = "Microsoft 365 Business Basic",
    quantity: int = 1,
    term: str | None = "P1Y",
    billing: str | None = "Monthly",
) -> OrderItem:
    return OrderItem(
        product_code="CFQ7TTC0LH18",
        sku_id=sku,
        availability_id="CFQ7TTC0LH1G",
        catalog_item_id=f"CFQ7TTC0LH18:{sku}:CFQ7TTC0LH1G",
        title=title,
        quantity=quantity,
        term_duration=term,
        billing_plan=billing,
        unit_price=Decimal("1.00"),
        line_total=Decimal(quantity),
    )


PREPAID = dict(title="Azure Plan Prepago", term="P1M", billing="OneTime")


class TestBuildLineItems:
    def test_regular_line(self):
        lines = build_line_items([order_item("0001", quantity=5)])
        assert lines == [{
            "id": 0,
            "catalogItemId": "CFQ7TTC0LH18:0001:CFQ7TTC0LH1G",
            "quantity": 5,
            "billingCycle": "Monthly",
            "termDuration": "P1Y",
        }]

    def test_prepaid_credit_omits_term(self):
        """Crédito prepago: sin termDuration."""
        lines = build_line_items([order_item("0001"), order_item("0002", quantity=10, **PREPAID)])
        assert "termDuration" in lines[0]
        assert "termDuration" not in lines[1]
        assert lines[1]["id"] == 1
        assert lines[1]["billingCycle"] == "OneTime"

    def test_p1m_without_marker_keeps_term(self):
        item = order_item("0001", title="Teams Essentials", term="P1M")
        assert is_prepaid_credit(item) is False
        assert build_line_items([item])[0]["termDuration"] == "P1M"

    def test_default_billing_cycle(self):
        lines = build_line_items([order_item("0001", billing=None)], default_billing_cycle="Annual")
        assert lines[0]["billingCycle"] == "Annual"

    def test_incomplete_catalog_item(self):
        item = order_item("0001")
        item.sku_id = ""
        with pytest.raises(ProvisioningError) as exc_info:
            build_line_items([item])
        assert exc_info.value.step == ProvisioningStep.PREPARE
        assert exc_info.value.detail.error_type == "invalid_product"


class TestBudget:
    @pytest.mark.parametrize(
        "quantity, expected",
        [(10, Decimal("8.60")), (1, Decimal("0.86")), (3, Decimal("2.58")), (125, Decimal("107.50"))],
    )
    def test_budget_amount(self, quantity, expected):
        assert budget_amount(quantity) == expected

    def test_sums_only_prepaid_quantity(self):
        items = [
            order_item("0001", quantity=4),
            order_item("0002", quantity=10, **PREPAID),
            order_item("0003", quantity=5, **PREPAID),
        ]
        assert compute_budget(items) == Decimal("12.90")

    def test_no_prepaid_means_no_budget(self):
        assert compute_budget([order_item("0001", quantity=4)]) is None

    def test_custom_factor(self):
        assert compute_budget([order_item("0002", quantity=10, **PREPAID)], Decimal("0.5")) == Decimal("5.00")


class TestMatchLineItems:
    def test_returned_line_items_flattens_orders(self):
        response = {"orders": [{"lineItems": [{"lineItemNumber": 0}]}, {"lineItems": [{"lineItemNumber": 1}]}]}
        assert [li["lineItemNumber"] for li in returned_line_items(response)] == [0, 1]
        assert returned_line_items({}) == []

    def test_by_line_number(self):
        items = [order_item("0001"), order_item("0002")]
        returned = [
            {"lineItemNumber": 1, "offerId": "CFQ7TTC0LH18:0002:CFQ7TTC0LH1G", "subscriptionId": "s2"},
            {"lineItemNumber": 0, "offerId": "CFQ7TTC0LH18:0001", "subscriptionId": "s1"},
        ]
        pairs = match_line_items(items, returned)
        assert [li["subscriptionId"] for _, li in pairs] == ["s1", "s2"]

    def test_falls_back_to_offer_id(self):
        """Si el número no coincide con el SKU se busca por offerId."""
        items = [order_item("0001"), order_item("0002")]
        returned = [
            {"lineItemNumber": 0, "offerId": "cfq7ttc0lh18:0002:cfq7ttc0lh1g", "subscriptionId": "s2"},
            {"offerId": "CFQ7TTC0LH18:0001:CFQ7TTC0LH1G:0001", "subscriptionId": "s1"},
        ]
        pairs = match_line_items(items, returned)
        assert [li["subscriptionId"] for _, li in pairs] == ["s1", "s2"]

    def test_unmatched_item(self):
        items = [order_item("0001"), order_item("0002")]
        pairs = match_line_items(items, [{"lineItemNumber": 0, "subscriptionId": "s1"}])
        assert pairs[0][1]["subscriptionId"] == "s1"
        assert pairs[1][1] is None

# Fin del archivo backend/tests/modules/provisioning/test_line_items.py
