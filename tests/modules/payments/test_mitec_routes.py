# backend/tests/modules/payments/test_mitec_routes.py
# -*- coding: utf-8 -*-
"""
Tests HTTP de la superficie MITEC (/api/payments/mitec).

Cubre:
- POST /checkout -> 201 y GET /sessions/{ref} sirve el formulario
- POST /callback aprobado -> 303 status=success, orden materializada,
  carrito convertido y correo de confirmación
- POST /callback rechazado -> 303 status=error y carrito reactivado
- POST /callback ilegible -> 303 status=error&error=PROCESSING_ERROR (nunca 5xx)
- Callback repetido -> un solo PaymentResponse y una sola orden
- POST /webhook protegido con token interno
"""

import base64
import json
from decimal import Decimal
from urllib.parse import parse_qs, urlsplit

import pytest
from sqlalchemy import func, select

from app.shared.integrations import StubEmailSender
from app.modules.orders.models import Cart, Order
from app.modules.orders.services import PurchaseConfirmationService
from app.modules.payments.models import PaymentResponse
from app.modules.payments.routes import get_callback_service, get_checkout_service
from app.modules.payments.services import CallbackService, CheckoutService


CARD = {
    "holder_name": "Juan Perez",
    "number": "4111111111111111",
    "exp_month": "09",
    "exp_year": "28",
    "cvv": "123",
}


@pytest.fixture
def email_stub() -> StubEmailSender:
    return StubEmailSender()


@pytest.fixture
def mitec_app(app, payments_settings, email_stub):
    app.dependency_overrides[get_checkout_service] = lambda: CheckoutService(payments_settings)
    app.dependency_overrides[get_callback_service] = lambda: CallbackService(
        payments_settings,
        confirmation=PurchaseConfirmationService(email_stub, operator_email="soporte@readymarket.test"),
    )
    return app


@pytest.fixture
async def client(mitec_app, async_client):
    return async_client


def query_of(location: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlsplit(location).query).items()}


async def start_checkout(client, session_factory, seed_factory) -> tuple[int, str]:
    async with session_factory() as session:
        seed = seed_factory(session)
        product = await seed.product()
        cart = await seed.cart([(product, 1)])
        await session.commit()
        cart_id = cart.id

    response = await client.post(
        "/api/payments/mitec/checkout",
        json={"cart_id": cart_id, "card": CARD, "customer_email": "cliente@test.mx"},
    )
    assert response.status_code == 201, response.text
    return cart_id, response.json()["reference"]


class TestCheckoutRoutes:
    async def test_checkout_and_session_form(self, client, session_factory, seed_factory):
        cart_id, reference = await start_checkout(client, session_factory, seed_factory)

        response = await client.get(f"/api/payments/mitec/sessions/{reference}")
        assert response.status_code == 200
        assert "mitecForm" in response.text
        assert response.headers["cache-control"] == "no-store"

    async def test_checkout_unknown_cart(self, client):
        response = await client.post(
            "/api/payments/mitec/checkout", json={"cart_id": 404, "card": CARD}
        )
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "cart_not_found"

    async def test_checkout_invalid_card_is_422(self, client):
        bad = dict(CARD, number="123")
        response = await client.post("/api/payments/mitec/checkout", json={"cart_id": 1, "card": bad})
        assert response.status_code == 422

    async def test_unknown_session_is_404(self, client):
        response = await client.get("/api/payments/mitec/sessions/MKT0_NOPE")
        assert response.status_code == 404

    async def test_config(self, client):
        response = await client.get("/api/payments/mitec/config")
        assert response.status_code == 200
        body = response.json()
        assert body["currency"] == "MXN"
        assert body["environment"] == "test"


class TestCallbackRoute:
    async def test_approved_callback_materializes_order(
        self, client, session_factory, seed_factory, email_stub, encrypted_callback
    ):
        """approved -> 303 success, orden de $115.98 y carrito convertido."""
        cart_id, reference = await start_checkout(client, session_factory, seed_factory)

        response = await client.post(
            f"/api/payments/mitec/callback?token={reference}",
            data=encrypted_callback(reference),
        )

        assert response.status_code == 303
        location = response.headers["location"]
        assert location.startswith("http://frontend.test/payment-result?")
        assert query_of(location) == {"reference": reference, "status": "success"}

        async with session_factory() as session:
            payment_response = await session.scalar(
                select(PaymentResponse).where(PaymentResponse.transaction_reference == reference)
            )
            order = await session.scalar(select(Order).where(Order.cart_id == cart_id))
            cart = await session.get(Cart, cart_id)

        assert payment_response.payment_status == "approved"
        assert payment_response.order_id == order.id
        assert order.total_amount == Decimal("115.98")
        assert order.status == "processing"
        assert order.payment_status == "paid"
        assert cart.status == "converted"

        recipients = {mail["to"] for mail in email_stub.sent}
        assert recipients == {"cliente@test.mx", "soporte@readymarket.test"}

    async def test_declined_callback_reactivates_cart(self, client, session_factory, seed_factory, encrypted_callback):
        cart_id, reference = await start_checkout(client, session_factory, seed_factory)

        response = await client.post(
            f"/api/payments/mitec/callback?token={reference}",
            data=encrypted_callback(reference, cd_error="05", nb_error="Declined"),
        )

        assert response.status_code == 303
        assert query_of(response.headers["location"])["status"] == "error"
        async with session_factory() as session:
            cart = await session.get(Cart, cart_id)
            orders = await session.scalar(select(func.count()).select_from(Order))
        assert cart.status == "active"
        assert cart.expires_at is not None
        assert orders == 0

    async def test_unreadable_callback_redirects_with_processing_error(self, client):
        """Payload ilegible nunca produce 5xx."""
        response = await client.post(
            "/api/payments/mitec/callback?token=MKT1_ABCDEF01",
            data={"strResponse": "***basura***"},
        )
        assert response.status_code == 303
        assert query_of(response.headers["location"]) == {
            "reference": "MKT1_ABCDEF01",
            "status": "error",
            "error": "PROCESSING_ERROR",
        }

    async def test_duplicate_callback_is_idempotent(
        self, client, session_factory, seed_factory, email_stub, encrypted_callback
    ):
        _, reference = await start_checkout(client, session_factory, seed_factory)
        form = encrypted_callback(reference)

        first = await client.post(f"/api/payments/mitec/callback?token={reference}", data=form)
        second = await client.post(f"/api/payments/mitec/callback?token={reference}", data=form)

        assert first.status_code == second.status_code == 303
        assert query_of(second.headers["location"])["status"] == "success"
        async with session_factory() as session:
            responses = await session.scalar(select(func.count()).select_from(PaymentResponse))
            orders = await session.scalar(select(func.count()).select_from(Order))
        assert responses == 1
        assert orders == 1
        assert len(email_stub.sent) == 2

    async def test_synthetic_callback(self, client, session_factory, seed_factory):
        """fake_mode=1 aceptado porque el entorno de prueba lo permite."""
        _, reference = await start_checkout(client, session_factory, seed_factory)
        payload = base64.b64encode(json.dumps({
            "reference": reference,
            "response": "approved",
            "auth": "SIM000001",
            "amount": "115.98",
        }).encode()).decode()

        response = await client.post(
            f"/api/payments/mitec/callback?token={reference}",
            data={"fake_mode": "1", "xml": payload, "reference": reference},
        )

        assert query_of(response.headers["location"])["status"] == "success"
        async with session_factory() as session:
            stored = await session.scalar(
                select(PaymentResponse).where(PaymentResponse.transaction_reference == reference)
            )
        assert stored.is_synthetic is True


class TestWebhookRoute:
    async def test_requires_internal_token(self, client):
        response = await client.post(
            "/api/payments/mitec/webhook", json={"transaction_reference": "MKT1_X"}
        )
        assert response.status_code == 401

    async def test_parsed_data(self, client, internal_headers):
        """Campos ya normalizados con estado explícito."""
        response = await client.post(
            "/api/payments/mitec/webhook",
            json={
                "transaction_reference": "MKT1_WEBHOOK01",
                "parsed_data": {"payment_response": "declined", "nb_error": "Fondos insuficientes"},
                "status": "error",
            },
            headers=internal_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["payment_status"] == "error"
        assert body["order_id"] is None

    async def test_error_code_beats_posted_status(self, client, session_factory, seed_factory, internal_headers):
        """cd_error manda aunque el servicio envíe status=approved."""
        cart_id, reference = await start_checkout(client, session_factory, seed_factory)

        response = await client.post(
            "/api/payments/mitec/webhook",
            json={
                "transaction_reference": reference,
                "parsed_data": {
                    "r3ds_reference": reference,
                    "cd_error": "05",
                    "nb_error": "Declined",
                    "payment_response": "approved",
                },
                "status": "approved",
            },
            headers=internal_headers,
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["payment_status"] == "error"
        assert body["order_id"] is None
        async with session_factory() as session:
            orders = await session.scalar(select(func.count()).select_from(Order))
            cart = await session.get(Cart, cart_id)
        assert orders == 0
        assert cart.status == "active"

    async def test_posted_status_only_without_signals(self, client, internal_headers):
        response = await client.post(
            "/api/payments/mitec/webhook",
            json={
                "transaction_reference": "MKT1_WEBHOOK02",
                "parsed_data": {"payment_folio": "F-1"},
                "status": "error",
            },
            headers=internal_headers,
        )
        assert response.status_code == 200, response.text
        assert response.json()["payment_status"] == "error"

    async def test_parsed_data_wins_over_fake_mode_xml(
        self, client, session_factory, seed_factory, internal_headers
    ):
        """El xml_response del modo simulado solo se guarda como copia cruda."""
        cart_id, reference = await start_checkout(client, session_factory, seed_factory)
        fake_xml = "<!-- FAKE MODE - XML no disponible -->"

        response = await client.post(
            "/api/payments/mitec/webhook",
            json={
                "transaction_reference": reference,
                "xml_response": fake_xml,
                "parsed_data": {
                    "r3ds_reference": reference,
                    "payment_response": "approved",
                    "payment_auth": "SIM000002",
                    "amount": "115.98",
                },
            },
            headers=internal_headers,
        )

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["payment_status"] == "approved"
        assert body["order_id"] is not None
        async with session_factory() as session:
            stored = await session.scalar(
                select(PaymentResponse).where(PaymentResponse.transaction_reference == reference)
            )
            order = await session.scalar(select(Order).where(Order.cart_id == cart_id))
        assert stored.raw_xml == fake_xml
        assert order.id == body["order_id"]

    async def test_malformed_xml_is_422(self, client, internal_headers):
        response = await client.post(
            "/api/payments/mitec/webhook",
            json={"transaction_reference": "MKT1_X", "xml_response": "<roto"},
            headers=internal_headers,
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "malformed_xml"

# Fin del archivo backend/tests/modules/payments/test_mitec_routes.py
