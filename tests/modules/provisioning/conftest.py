# backend/tests/modules/provisioning/conftest.py
# -*- coding: utf-8 -*-
"""
Fixtures del módulo Provisioning.

- Órdenes pagadas listas para aprovisionar (carrito + pago aprobado + materialización)
- Fan-out con correo stub y sin WhatsApp
- Cliente de Partner Center real sobre httpx.MockTransport
"""

import itertools
from typing import Any, Callable, Optional, Sequence

import httpx
import pytest

from app.shared.integrations import StubEmailSender
from app.modules.notifications.services import NotificationFanout
from app.modules.orders.models import Order
from app.modules.orders.services import OrderMaterializer
from app.modules.provisioning.client import PartnerCenterClient, TokenCache

BASE_URL = "https://partner.test/v1"
TOKEN_URL = "https://token.test/partner-center/token"


@pytest.fixture
def make_paid_order(seed_factory):
    """
    Crea una orden processing/paid. Cada llamada usa SKU, referencia y
    customer id distintos para no chocar con las restricciones únicas.

    lines: [(kwargs de Seed.product, cantidad), ...]
    """
    counter = itertools.count(1)

    async def _make(
        session,
        *,
        lines: Optional[Sequence[tuple[dict[str, Any], int]]] = None,
        with_account: bool = True,
    ) -> Order:
        n = next(counter)
        seed = seed_factory(session)
        account = None
        if with_account:
            account = await seed.account(
                microsoft_id=f"a1b2c3d4-0000-4000-8000-{n:012d}",
                domain=f"contoso{n}.onmicrosoft.com",
            )
        cart_lines = []
        for index, (product_kwargs, quantity) in enumerate(lines or [({}, 1)], start=1):
            product = await seed.product(sku_id=f"{n:02d}{index:02d}", **product_kwargs)
            cart_lines.append((product, quantity))
        cart = await seed.cart(cart_lines, account=account)
        payment_response = await seed.payment_response(cart, reference=f"MKT17600000000000{n:02d}_ABCDEF01")
        result = await OrderMaterializer().materialize(
            session, cart.id, payment_response, customer_email="cliente@test.mx"
        )
        return result.order

    return _make


@pytest.fixture
def alert_email() -> StubEmailSender:
    return StubEmailSender()


@pytest.fixture
def fanout(alert_email) -> NotificationFanout:
    return NotificationFanout(alert_email, None, email_recipients=["ops@readymarket.test"])


@pytest.fixture
def mock_partner_center() -> Callable[[Callable[[httpx.Request], httpx.Response]], PartnerCenterClient]:
    """
    Construye un PartnerCenterClient cuyas llamadas pasan por `handler`.
    El token se sirve siempre; el resto lo decide el test.
    """

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> PartnerCenterClient:
        def _route(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"item": {"token": "pc-token"}})
            return handler(request)

        return PartnerCenterClient(
            BASE_URL,
            TOKEN_URL,
            "token-api-key",
            token_cache=TokenCache(use_redis=False),
            transport=httpx.MockTransport(_route),
        )

    return _build

# Fin del archivo backend/tests/modules/provisioning/conftest.py
