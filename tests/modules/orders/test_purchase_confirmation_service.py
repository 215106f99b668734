# backend/tests/modules/orders/test_purchase_confirmation_service.py
# -*- coding: utf-8 -*-
"""
Tests del correo de confirmación de compra.

Cubre:
- Comprador + soporte, sin duplicados
- Un proveedor caído no interrumpe el resto de destinatarios
- Contenido: folio, líneas y total
"""

from decimal import Decimal

from app.shared.integrations import EmailDeliveryError, StubEmailSender
from app.modules.orders.models import Order, OrderItem
from app.modules.orders.services import PurchaseConfirmationService
from app.modules.orders.services.purchase_confirmation_service import render_confirmation


def make_order(customer_email="cliente@test.mx") -> Order:
    return Order(
        order_number="ORD-202610000007",
        customer_email=customer_email,
        currency="MXN",
        subtotal=Decimal("1159.80"),
        tax_amount=Decimal("0.00"),
        discount_amount=Decimal("0.00"),
        total_amount=Decimal("1159.80"),
    )


def make_items() -> list[OrderItem]:
    return [
        OrderItem(
            title="Microsoft 365 <Business> Basic",
            quantity=10,
            unit_price=Decimal("115.98"),
            line_total=Decimal("1159.80"),
        )
    ]


class FlakySender(StubEmailSender):
    def __init__(self, failing: str):
        super().__init__()
        self.failing = failing

    async def send_email(self, to_email, subject, html_body, text_body=None):
        if to_email == self.failing:
            raise EmailDeliveryError("proveedor no disponible")
        await super().send_email(to_email, subject, html_body, text_body)


class TestPurchaseConfirmation:
    async def test_customer_and_operator(self):
        sender = StubEmailSender()
        sent = await PurchaseConfirmationService(sender, "soporte@readymarket.test").send(make_order(), make_items())

        assert sent == 2
        assert [mail["to"] for mail in sender.sent] == ["cliente@test.mx", "soporte@readymarket.test"]
        assert sender.sent[0]["subject"] == "Confirmación de compra - Orden ORD-202610000007"

    async def test_same_address_is_sent_once(self):
        sender = StubEmailSender()
        sent = await PurchaseConfirmationService(sender, "cliente@test.mx").send(make_order(), make_items())
        assert sent == 1

    async def test_failure_does_not_stop_other_recipients(self):
        sender = FlakySender(failing="cliente@test.mx")
        sent = await PurchaseConfirmationService(sender, "soporte@readymarket.test").send(make_order(), make_items())

        assert sent == 1
        assert [mail["to"] for mail in sender.sent] == ["soporte@readymarket.test"]

    async def test_no_recipients(self):
        sender = StubEmailSender()
        assert await PurchaseConfirmationService(sender).send(make_order(customer_email=None), []) == 0
        assert sender.sent == []

    def test_render_escapes_and_totals(self):
        _, html_body, text_body = render_confirmation(make_order(), make_items())
        assert "Microsoft 365 &lt;Business&gt; Basic" in html_body
        assert "$1,159.80" in html_body
        assert "Total: $1,159.80 MXN" in text_body

# Fin del archivo backend/tests/modules/orders/test_purchase_confirmation_service.py
