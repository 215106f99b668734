# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/services/payment_failure_service.py

Compensación ante un pago rechazado (PaymentResponse con status error):

- Cancela órdenes del carrito que aún no estén pagadas
  (status=cancelled, payment_status=failed, motivo).
- Reactiva el carrito (active, expira en 7 días) salvo que ya haya sido
  convertido por un pago aprobado.

Solo hace flush; el commit es del llamador.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.modules.orders.enums import CartStatus, OrderPaymentStatus, OrderStatus
from app.modules.orders.repositories import CartRepository, OrderRepository
from app.modules.payments.enums import PaymentResponseStatus
from app.modules.payments.models import PaymentResponse

logger = logging.getLogger(__name__)

CART_REACTIVATION_DAYS = 7


@dataclass
class CompensationResult:
    cancelled_order_ids: list[int] = field(default_factory=list)
    cart_reactivated: bool = False


def failure_reason(payment_response: PaymentResponse) -> str:
    detail = payment_response.nb_error or payment_response.r3ds_response_description or "sin detalle"
    code = payment_response.cd_error or payment_response.r3ds_response_code or "-"
    return f"Pago rechazado por la pasarela ({code}): {detail}"


class PaymentFailureService:
    def __init__(
        self,
        order_repo: Optional[OrderRepository] = None,
        cart_repo: Optional[CartRepository] = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.cart_repo = cart_repo or CartRepository()

    async def compensate(self, session: AsyncSession, payment_response: PaymentResponse) -> CompensationResult:
        result = CompensationResult()
        if payment_response.payment_status != PaymentResponseStatus.ERROR:
            return result

        cart_id = payment_response.cart_id
        if cart_id is None:
            logger.info(
                "payment_failure_no_cart reference=%s", payment_response.transaction_reference
            )
            return result

        now = utcnow()
        reason = failure_reason(payment_response)

        for order in await self.order_repo.list_unpaid_for_cart(session, cart_id):
            order.status = OrderStatus.CANCELLED.value
            order.payment_status = OrderPaymentStatus.FAILED.value
            order.cancellation_reason = reason
            order.cancelled_at = now
            result.cancelled_order_ids.append(order.id)

        cart = await self.cart_repo.get(session, cart_id)
        if cart is not None and cart.status != CartStatus.CONVERTED:
            cart.status = CartStatus.ACTIVE.value
            cart.expires_at = now + timedelta(days=CART_REACTIVATION_DAYS)
            result.cart_reactivated = True

        await session.flush()
        logger.info(
            "payment_failure_compensated reference=%s cart_id=%s cancelled_orders=%s cart_reactivated=%s",
            payment_response.transaction_reference, cart_id, result.cancelled_order_ids, result.cart_reactivated,
        )
        return result


__all__ = ["PaymentFailureService", "CompensationResult", "failure_reason", "CART_REACTIVATION_DAYS"]
# Fin del archivo backend/app/modules/orders/services/payment_failure_service.py
