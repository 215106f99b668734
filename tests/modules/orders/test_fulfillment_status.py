# backend/tests/modules/orders/test_fulfillment_status.py
# -*- coding: utf-8 -*-
"""
Agregado de fulfillment de la orden a partir de sus partidas.
"""

import pytest

from app.modules.orders.enums import OrderFulfillmentStatus


@pytest.mark.parametrize(
    "items, expected",
    [
        ([], OrderFulfillmentStatus.PENDING),
        (["pending", "pending"], OrderFulfillmentStatus.PENDING),
        (["fulfilled", "fulfilled"], OrderFulfillmentStatus.FULFILLED),
        (["fulfilled", "failed"], OrderFulfillmentStatus.PARTIALLY_FULFILLED),
        (["fulfilled", "pending"], OrderFulfillmentStatus.PARTIALLY_FULFILLED),
        (["failed", "failed"], OrderFulfillmentStatus.FAILED),
        (["processing", "failed"], OrderFulfillmentStatus.PROCESSING),
        (["pending", "failed"], OrderFulfillmentStatus.FAILED),
    ],
)
def test_aggregate(items, expected):
    assert OrderFulfillmentStatus.aggregate(items) == expected


def test_unknown_item_status_raises():
    with pytest.raises(ValueError):
        OrderFulfillmentStatus.aggregate(["desconocido"])

# Fin del archivo backend/tests/modules/orders/test_fulfillment_status.py
