# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/checkout_service.py

Inicio del pago con MITEC.

Flujo:
    1. Validar carrito (existe, activo, con productos) y monto dentro de
       los límites configurados.
    2. Generar la referencia MKT... y armar el formulario (o el formulario
       de simulación si MITEC_SIMULATE_GATEWAY está activo).
    3. Persistir la PaymentSession con TTL antes de devolver nada al
       navegador: el callback siempre encuentra su correlación aunque el
       cliente no complete la redirección.

El commit lo hace la ruta.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import PaymentsSettings, get_payments_settings
from app.shared.database.base import utcnow
from app.modules.orders.enums import CartStatus
from app.modules.orders.repositories import CartRepository, active_items
from app.modules.payments.gateway.references import generate_reference
from app.modules.payments.gateway.request_builder import (
    BillingData,
    CardData,
    MerchantConfig,
    MitecRequestBuilder,
)
from app.modules.payments.models import PaymentSession
from app.modules.payments.repositories import PaymentSessionRepository
from app.modules.payments.schemas import CheckoutRequest

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Carrito o monto no válidos para iniciar el pago."""

    def __init__(self, message: str, *, code: str, status_code: int = 422):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


@dataclass(frozen=True)
class CheckoutResult:
    payment_session: PaymentSession
    simulated: bool

    @property
    def reference(self) -> str:
        return self.payment_session.transaction_reference


class CheckoutService:
    def __init__(
        self,
        settings: Optional[PaymentsSettings] = None,
        builder: Optional[MitecRequestBuilder] = None,
        cart_repo: Optional[CartRepository] = None,
        session_repo: Optional[PaymentSessionRepository] = None,
    ):
        self.settings = settings or get_payments_settings()
        self.builder = builder or MitecRequestBuilder(MerchantConfig.from_settings(self.settings))
        self.cart_repo = cart_repo or CartRepository()
        self.session_repo = session_repo or PaymentSessionRepository()

    async def start(
        self,
        session: AsyncSession,
        request: CheckoutRequest,
        *,
        user_id: Optional[int] = None,
        browser_ip: Optional[str] = None,
    ) -> CheckoutResult:
        cart = await self.cart_repo.get_with_items(session, request.cart_id)
        if cart is None:
            raise CheckoutError(f"Carrito {request.cart_id} no encontrado", code="cart_not_found", status_code=404)
        if cart.status != CartStatus.ACTIVE:
            raise CheckoutError(f"El carrito {cart.id} no está activo", code="cart_not_active")
        if not active_items(cart):
            raise CheckoutError(f"El carrito {cart.id} no tiene productos", code="cart_empty")

        amount = cart.total_amount
        if not (self.settings.min_payment_amount <= amount <= self.settings.max_payment_amount):
            raise CheckoutError(
                f"Monto {amount} fuera de rango ({self.settings.min_payment_amount} - "
                f"{self.settings.max_payment_amount})",
                code="amount_out_of_range",
            )

        reference = generate_reference()
        card = CardData(
            holder_name=request.card.holder_name,
            number=request.card.number,
            exp_month=request.card.exp_month,
            exp_year=request.card.exp_year,
            cvv=request.card.cvv,
        )
        customer_email = request.customer_email or request.billing.email or None
        billing = BillingData(phone=request.billing.phone, email=request.billing.email or customer_email or "")

        simulated = self.settings.mitec_simulate_gateway
        if simulated:
            built = self.builder.build_synthetic(reference, amount, card)
        else:
            built = self.builder.build(
                reference,
                amount,
                cart.currency or self.settings.mitec_default_currency,
                card,
                billing,
                browser_ip or self.settings.mitec_browser_ip_fallback,
            )

        payment_session = PaymentSession(
            transaction_reference=reference,
            form_payload=built.form_payload,
            html_form=built.html_form,
            gateway_url=built.gateway_url,
            user_id=user_id if user_id is not None else cart.user_id,
            cart_id=cart.id,
            customer_account_id=request.customer_account_id or cart.customer_account_id,
            payment_method=request.payment_method,
            customer_email=customer_email,
            amount=amount,
            currency=cart.currency or self.settings.mitec_default_currency,
            expires_at=utcnow() + timedelta(minutes=self.settings.payment_session_ttl_minutes),
        )
        await self.session_repo.add(session, payment_session)

        logger.info(
            "payment_session_created reference=%s cart_id=%s amount=%s simulated=%s card=****%s",
            reference, cart.id, amount, simulated, card.last_four,
        )
        return CheckoutResult(payment_session=payment_session, simulated=simulated)


__all__ = ["CheckoutService", "CheckoutResult", "CheckoutError"]
# Fin del archivo backend/app/modules/payments/services/checkout_service.py
