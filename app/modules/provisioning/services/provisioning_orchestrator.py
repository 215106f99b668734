# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/services/provisioning_orchestrator.py

Orquestador del aprovisionamiento de una orden pagada en Partner Center.

Secuencia (saga, sin transacción distribuida):
    1. token (caché)
    2. mapear líneas pendientes a lineItems
    3. crear carrito remoto
    4. checkout -> suscripciones
    5. presupuesto de crédito prepago (best-effort, nunca escala)
    6. persistir una Subscription por línea devuelta (SAVEPOINT)
    7. completar la orden solo si todas las líneas quedaron fulfilled

Ante un fallo en 1-4 o 6 la orden se queda en processing (no existe un
estado terminal "failed"): se registra el intento y el detalle
estructurado, se notifica al operador y se relanza ProvisioningError.
Cualquier otra excepción se envuelve en ProvisioningError con
error_type="unexpected" y el paso en curso.
Pago y orden nunca se revierten por un fallo de aprovisionamiento.

El commit lo hace el llamador (retry service, job, CLI).

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import ProvisioningSettings, get_provisioning_settings
from app.shared.database.base import utcnow
from app.modules.notifications.services import AlertContext, NotificationFanout
from app.modules.orders.enums import (
    ItemFulfillmentStatus,
    OrderFulfillmentStatus,
    OrderPaymentStatus,
    OrderStatus,
)
from app.modules.orders.models import Order, OrderItem
from app.modules.orders.repositories import OrderRepository
from app.modules.provisioning.client import IPartnerCenterClient
from app.modules.provisioning.errors import (
    BudgetResult,
    OrderNotEligibleError,
    ProvisioningError,
    ProvisioningErrorDetail,
    ProvisioningStep,
)
from app.modules.provisioning.models import CustomerAccount, SUBSCRIPTION_ACTIVE, Subscription
from app.observability.prom import provisioning_attempts_total

from .line_items import (
    build_line_items,
    compute_budget,
    match_line_items,
    returned_line_items,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisioningOutcome:
    order_id: int
    completed: bool
    subscriptions_created: int = 0
    microsoft_cart_id: Optional[str] = None
    budget: Optional[BudgetResult] = None
    already_completed: bool = False


@dataclass
class _Progress:
    """Paso en curso; etiqueta los errores no tipados."""

    step: ProvisioningStep = ProvisioningStep.PREPARE


def alert_context(
    order: Order,
    items: Sequence[OrderItem],
    account: Optional[CustomerAccount],
) -> AlertContext:
    return AlertContext(
        order_number=order.order_number,
        total_amount=order.total_amount,
        currency=order.currency,
        customer_email=order.customer_email or (account.contact_email if account else None),
        microsoft_id=account.microsoft_id if account else None,
        domain=account.domain if account else None,
        items=tuple((item.title, item.quantity) for item in items),
    )


class ProvisioningOrchestrator:
    def __init__(
        self,
        client: IPartnerCenterClient,
        fanout: NotificationFanout,
        settings: Optional[ProvisioningSettings] = None,
        order_repo: Optional[OrderRepository] = None,
    ):
        self.client = client
        self.fanout = fanout
        self.settings = settings or get_provisioning_settings()
        self.order_repo = order_repo or OrderRepository()

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------

    async def provision(self, session: AsyncSession, order_id: int) -> ProvisioningOutcome:
        order = await self.order_repo.get_with_items(session, order_id)
        if order is None:
            raise OrderNotEligibleError(order_id, "no existe")
        if order.status == OrderStatus.CANCELLED:
            raise OrderNotEligibleError(order_id, "cancelada")
        if order.payment_status != OrderPaymentStatus.PAID:
            raise OrderNotEligibleError(order_id, f"payment_status={order.payment_status}")

        pending = [i for i in order.items if i.fulfillment_status != ItemFulfillmentStatus.FULFILLED]
        if order.status == OrderStatus.COMPLETED or not pending:
            self._complete_if_fulfilled(order)
            await session.flush()
            logger.info("provisioning_already_completed order_id=%s", order.id)
            return ProvisioningOutcome(order_id=order.id, completed=True, already_completed=True)

        now = utcnow()
        order.provisioning_attempts = (order.provisioning_attempts or 0) + 1
        order.last_provisioning_attempt_at = now
        for item in pending:
            item.fulfillment_status = ItemFulfillmentStatus.PROCESSING.value
        order.fulfillment_status = OrderFulfillmentStatus.PROCESSING.value
        await session.flush()

        account: Optional[CustomerAccount] = None
        if order.customer_account_id is not None:
            account = await session.get(CustomerAccount, order.customer_account_id)

        logger.info(
            "provisioning_started order_id=%s number=%s attempt=%d items=%d",
            order.id, order.order_number, order.provisioning_attempts, len(pending),
        )

        progress = _Progress()
        try:
            outcome = await self._run(session, order, pending, account, progress)
        except ProvisioningError as e:
            await self._fail(session, order, account, e)
            raise
        except Exception as e:
            logger.exception("provisioning_unexpected_error order_id=%s step=%s", order.id, progress.step)
            error = ProvisioningError(
                progress.step,
                ProvisioningErrorDetail(
                    message=f"Error inesperado: {type(e).__name__}: {e}",
                    error_type="unexpected",
                ),
            )
            await self._fail(session, order, account, error)
            raise error from e

        provisioning_attempts_total.labels("completed" if outcome.completed else "partial").inc()
        return outcome

    async def _fail(
        self,
        session: AsyncSession,
        order: Order,
        account: Optional[CustomerAccount],
        error: ProvisioningError,
    ) -> None:
        await self._record_failure(session, order, error)
        provisioning_attempts_total.labels("failed").inc()
        logger.error(
            "provisioning_failed order_id=%s step=%s http=%s code=%s message=%s",
            order.id, error.step, error.detail.http_status, error.detail.error_code, error.detail.message,
        )
        await self.fanout.notify(alert_context(order, order.items, account), str(error), error.to_dict())

    # ------------------------------------------------------------------
    # Pasos
    # ------------------------------------------------------------------

    async def _run(
        self,
        session: AsyncSession,
        order: Order,
        pending: list[OrderItem],
        account: Optional[CustomerAccount],
        progress: _Progress,
    ) -> ProvisioningOutcome:
        if account is None or not account.microsoft_id:
            raise ProvisioningError(
                ProvisioningStep.PREPARE,
                ProvisioningErrorDetail(
                    message="La orden no tiene una cuenta de Partner Center con customer id",
                    error_type="missing_customer_account",
                ),
            )
        customer_id = account.microsoft_id

        progress.step = ProvisioningStep.TOKEN
        token = await self.client.get_token()

        progress.step = ProvisioningStep.PREPARE
        line_items = build_line_items(
            pending,
            default_billing_cycle=self.settings.default_billing_cycle,
            prepaid_term=self.settings.prepaid_term,
            title_marker=self.settings.prepaid_title_marker,
        )

        progress.step = ProvisioningStep.CREATE_CART
        cart = await self.client.create_cart(customer_id, line_items, token)
        cart_id = str(cart["id"])

        progress.step = ProvisioningStep.CHECKOUT
        checkout = await self.client.checkout(customer_id, cart_id, token)

        budget = await self._apply_budget(customer_id, pending, token)

        progress.step = ProvisioningStep.PERSIST_SUBSCRIPTIONS
        created = await self._persist_subscriptions(session, order, pending, checkout, cart_id, account)

        completed = self._complete_if_fulfilled(order)
        if completed:
            order.last_provisioning_error = None
        await session.flush()

        logger.info(
            "provisioning_succeeded order_id=%s cart_id=%s subscriptions=%d completed=%s",
            order.id, cart_id, created, completed,
        )
        return ProvisioningOutcome(
            order_id=order.id,
            completed=completed,
            subscriptions_created=created,
            microsoft_cart_id=cart_id,
            budget=budget,
        )

    async def _apply_budget(
        self, customer_id: str, items: Sequence[OrderItem], token: str
    ) -> Optional[BudgetResult]:
        amount: Optional[Decimal] = compute_budget(
            items,
            self.settings.budget_factor,
            prepaid_term=self.settings.prepaid_term,
            title_marker=self.settings.prepaid_title_marker,
        )
        if amount is None:
            return None
        result = await self.client.set_usage_budget(customer_id, amount, token)
        if not result.applied:
            logger.warning("provisioning_budget_not_applied customer=%s amount=%s error=%s", customer_id, amount, result.error)
        return result

    async def _persist_subscriptions(
        self,
        session: AsyncSession,
        order: Order,
        pending: list[OrderItem],
        checkout: dict[str, Any],
        cart_id: str,
        account: CustomerAccount,
    ) -> int:
        returned = returned_line_items(checkout)
        if not returned:
            raise ProvisioningError(
                ProvisioningStep.PERSIST_SUBSCRIPTIONS,
                ProvisioningErrorDetail(
                    message="La respuesta de checkout no trae lineItems",
                    raw_response=str(checkout),
                ),
            )

        pairs = match_line_items(pending, returned)
        matched = [(item, li) for item, li in pairs if li is not None]

        try:
            subscriptions = [
                Subscription(
                    order_id=order.id,
                    order_item_id=item.id,
                    customer_account_id=account.id,
                    product_id=item.product_id,
                    subscription_identifier=order.order_number,
                    subscription_id=li.get("subscriptionId"),
                    offer_id=li.get("offerId"),
                    sku_id=item.sku_id,
                    microsoft_cart_id=cart_id,
                    term_duration=li.get("termDuration") or item.term_duration,
                    billing_cycle=item.billing_plan or self.settings.default_billing_cycle,
                    transaction_type=li.get("transactionType"),
                    friendly_name=li.get("friendlyName") or item.title,
                    quantity=int(li.get("quantity") or item.quantity),
                    pricing=_list_price(li, item),
                    status=SUBSCRIPTION_ACTIVE,
                )
                for item, li in matched
            ]
        except (ArithmeticError, ValueError, TypeError) as e:
            raise ProvisioningError(
                ProvisioningStep.PERSIST_SUBSCRIPTIONS,
                ProvisioningErrorDetail(
                    message=f"lineItems de checkout inválidos: {type(e).__name__}: {e}",
                    error_type="invalid_checkout_response",
                    raw_response=str(checkout),
                ),
            ) from e

        try:
            async with session.begin_nested():
                session.add_all(subscriptions)
                await session.flush()
        except SQLAlchemyError as e:
            raise ProvisioningError(
                ProvisioningStep.PERSIST_SUBSCRIPTIONS,
                ProvisioningErrorDetail(
                    message=f"No se guardaron las suscripciones: {type(e).__name__}",
                    error_type="database",
                ),
            ) from e

        now = utcnow()
        for item, _ in matched:
            item.fulfillment_status = ItemFulfillmentStatus.FULFILLED.value
            item.fulfilled_at = now
            item.fulfillment_error = None
        await session.flush()

        unmatched = [item for item, li in pairs if li is None]
        if unmatched:
            raise ProvisioningError(
                ProvisioningStep.PERSIST_SUBSCRIPTIONS,
                ProvisioningErrorDetail(
                    message=f"{len(unmatched)} línea(s) sin suscripción en la respuesta de checkout",
                    raw_response=str(checkout),
                ),
            )
        return len(matched)

    # ------------------------------------------------------------------
    # Estado de la orden
    # ------------------------------------------------------------------

    @staticmethod
    def _complete_if_fulfilled(order: Order) -> bool:
        order.fulfillment_status = OrderFulfillmentStatus.aggregate(
            i.fulfillment_status for i in order.items
        ).value
        if order.fulfillment_status == OrderFulfillmentStatus.FULFILLED:
            if order.status != OrderStatus.COMPLETED:
                order.status = OrderStatus.COMPLETED.value
                order.completed_at = utcnow()
            return True
        return False

    @staticmethod
    async def _record_failure(session: AsyncSession, order: Order, error: ProvisioningError) -> None:
        for item in order.items:
            if item.fulfillment_status != ItemFulfillmentStatus.FULFILLED:
                item.fulfillment_status = ItemFulfillmentStatus.FAILED.value
                item.fulfillment_error = str(error)
        order.fulfillment_status = OrderFulfillmentStatus.aggregate(
            i.fulfillment_status for i in order.items
        ).value
        order.last_provisioning_error = error.to_dict()
        await session.flush()


def _list_price(line: dict[str, Any], item: OrderItem) -> Optional[Decimal]:
    pricing = line.get("pricing") or {}
    value = pricing.get("listPrice") if isinstance(pricing, dict) else None
    if value is None:
        return item.unit_price
    return Decimal(str(value))


__all__ = ["ProvisioningOrchestrator", "ProvisioningOutcome", "alert_context"]
# Fin del archivo backend/app/modules/provisioning/services/provisioning_orchestrator.py
