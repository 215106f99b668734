# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/services/order_materializer.py

Materializador de órdenes: carrito + PaymentResponse aprobado -> Order.

Todo ocurre dentro de un SAVEPOINT:
    folio -> INSERT order -> N INSERT order_items (snapshot) ->
    carrito converted + expires_at=ahora -> back-link payment_responses.order_id
Si algo falla se revierte completo: el carrito sigue activo y el pago sin
orden, por lo que reintentar es seguro.

Idempotencia: antes de crear se busca una orden para el payment_response;
UNIQUE(orders.payment_response_id) resuelve la carrera entre procesos.

El commit lo hace el llamador.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.modules.orders.enums import (
    CartStatus,
    ItemFulfillmentStatus,
    OrderFulfillmentStatus,
    OrderPaymentStatus,
    OrderStatus,
)
from app.modules.orders.errors import OrderMaterializationError
from app.modules.orders.models import CartItem, Order, OrderItem
from app.modules.orders.repositories import CartRepository, OrderRepository, active_items
from app.modules.orders.services.order_number_service import next_order_number
from app.modules.payments.enums import PaymentResponseStatus
from app.modules.payments.models import PaymentResponse
from app.observability.prom import orders_materialized_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializationResult:
    order: Order
    created: bool


def snapshot_item(order_id: int, item: CartItem) -> OrderItem:
    """Copia por valor los campos de catálogo y precio de la línea."""
    product = item.product
    category = product.category
    list_price = item.list_price if item.list_price is not None else product.list_price
    return OrderItem(
        order_id=order_id,
        product_id=product.id,
        cart_item_id=item.id,
        product_code=product.product_code,
        sku_id=product.sku_id,
        availability_id=product.availability_id,
        catalog_item_id=product.catalog_item_id,
        title=product.title,
        sku_title=product.sku_title,
        publisher=product.publisher,
        description=product.description,
        term_duration=product.term_duration,
        billing_plan=product.billing_plan,
        category_id=category.id if category is not None else None,
        category_name=category.name if category is not None else None,
        quantity=item.quantity,
        unit_price=item.unit_price,
        list_price=list_price,
        discount_amount=item.discount_amount,
        line_total=item.line_total,
        fulfillment_status=ItemFulfillmentStatus.PENDING.value,
    )


class OrderMaterializer:
    def __init__(
        self,
        order_repo: Optional[OrderRepository] = None,
        cart_repo: Optional[CartRepository] = None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.cart_repo = cart_repo or CartRepository()

    async def materialize(
        self,
        session: AsyncSession,
        cart_id: int,
        payment_response: PaymentResponse,
        *,
        payment_method: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> MaterializationResult:
        if payment_response.payment_status != PaymentResponseStatus.APPROVED:
            raise OrderMaterializationError(
                f"El pago {payment_response.transaction_reference} no está aprobado",
                code="payment_not_approved",
            )

        existing = await self.order_repo.get_by_payment_response_id(session, payment_response.id)
        if existing is not None:
            logger.info(
                "order_materialize_existing order_id=%s payment_response_id=%s",
                existing.id, payment_response.id,
            )
            return MaterializationResult(order=existing, created=False)

        cart = await self.cart_repo.get_with_items(session, cart_id)
        if cart is None:
            raise OrderMaterializationError(f"Carrito {cart_id} no encontrado", code="cart_not_found")
        if cart.status != CartStatus.ACTIVE:
            raise OrderMaterializationError(
                f"Carrito {cart_id} no está activo (status={cart.status})", code="cart_not_active"
            )

        items = active_items(cart)
        if not items:
            raise OrderMaterializationError(f"Carrito {cart_id} sin productos", code="cart_empty")

        if payment_response.amount is not None and payment_response.amount != cart.total_amount:
            logger.warning(
                "order_materialize_amount_mismatch cart_id=%s cart_total=%s payment_amount=%s",
                cart.id, cart.total_amount, payment_response.amount,
            )

        now = utcnow()
        try:
            async with session.begin_nested():
                order = Order(
                    order_number=await next_order_number(session, now),
                    user_id=cart.user_id if cart.user_id is not None else payment_response.user_id,
                    cart_id=cart.id,
                    customer_account_id=payment_response.customer_account_id or cart.customer_account_id,
                    payment_response_id=payment_response.id,
                    status=OrderStatus.PROCESSING.value,
                    payment_status=OrderPaymentStatus.PAID.value,
                    fulfillment_status=OrderFulfillmentStatus.PENDING.value,
                    currency=cart.currency,
                    subtotal=cart.subtotal,
                    tax_amount=cart.tax_amount,
                    discount_amount=cart.discount_amount,
                    total_amount=cart.total_amount,
                    payment_method=payment_method,
                    customer_email=customer_email,
                )
                session.add(order)
                await session.flush()

                session.add_all([snapshot_item(order.id, item) for item in items])

                cart.status = CartStatus.CONVERTED.value
                cart.expires_at = now
                payment_response.order_id = order.id
                await session.flush()
        except IntegrityError:
            # el rollback del SAVEPOINT expira la respuesta y el carrito
            await session.refresh(payment_response)
            existing = await self.order_repo.get_by_payment_response_id(session, payment_response.id)
            if existing is None:
                raise
            logger.info(
                "order_materialize_race order_id=%s payment_response_id=%s",
                existing.id, payment_response.id,
            )
            return MaterializationResult(order=existing, created=False)

        orders_materialized_total.inc()
        logger.info(
            "order_materialized order_id=%s number=%s cart_id=%s payment_response_id=%s items=%d total=%s",
            order.id, order.order_number, cart.id, payment_response.id, len(items), order.total_amount,
        )
        return MaterializationResult(order=order, created=True)


__all__ = ["OrderMaterializer", "MaterializationResult", "snapshot_item"]
# Fin del archivo backend/app/modules/orders/services/order_materializer.py
