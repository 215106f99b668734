# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/callback_service.py

Procesamiento del callback de MITEC (navegador o webhook interno).

    decode -> reconcile -> (approved) materializar orden
                        -> (error)    compensar orden/carrito
    commit (ruta) -> confirmación de compra por correo (best-effort)

Un fallo al materializar NO invalida el callback: la PaymentResponse ya
quedó registrada y la materialización es idempotente por
payment_response_id, así que un callback repetido la reintenta.

La orden se aprovisiona después, desde el job de reintento (las órdenes
nuevas tienen 0 intentos) o manualmente.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import PaymentsSettings, get_payments_settings, settings as app_settings
from app.shared.integrations import get_email_sender
from app.modules.orders.errors import OrderMaterializationError
from app.modules.orders.repositories import OrderRepository
from app.modules.orders.services import (
    OrderMaterializer,
    PaymentFailureService,
    PurchaseConfirmationService,
)
from app.modules.payments.enums import PaymentResponseStatus
from app.modules.payments.gateway.callback_decoder import (
    ALL_FIELDS,
    CallbackDecoder,
    DecodedCallback,
    classify_status,
)
from app.modules.payments.models import PaymentResponse, PaymentSession
from app.modules.payments.repositories import PaymentSessionRepository
from app.observability.prom import mitec_callbacks_total

from .reconciliation_service import ReconciliationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallbackOutcome:
    payment_response: PaymentResponse
    created: bool
    order_id: Optional[int] = None
    order_created: bool = False

    @property
    def status(self) -> PaymentResponseStatus:
        return self.payment_response.status

    @property
    def reference(self) -> str:
        return self.payment_response.transaction_reference


def decoded_from_parsed(
    reference: str,
    parsed: Mapping[str, Any],
    status: Optional[PaymentResponseStatus] = None,
    raw_xml: str = "",
) -> DecodedCallback:
    """
    Campos ya normalizados (webhook interno) -> DecodedCallback.

    El estado siempre sale de classify_status; el estado enviado solo
    cuenta cuando los campos no traen código de error, código 3DS ni
    texto de respuesta.
    """
    fields = {name: "" for name in ALL_FIELDS}
    for name in ALL_FIELDS:
        value = parsed.get(name)
        if value is not None:
            fields[name] = str(value).strip()
    if not fields["r3ds_reference"]:
        fields["r3ds_reference"] = reference

    classified = classify_status(fields)
    if classified == PaymentResponseStatus.PENDING and status is not None:
        classified = status
    return DecodedCallback(fields=fields, raw_xml=raw_xml, status=classified)


class CallbackService:
    def __init__(
        self,
        settings: Optional[PaymentsSettings] = None,
        decoder: Optional[CallbackDecoder] = None,
        reconciler: Optional[ReconciliationService] = None,
        materializer: Optional[OrderMaterializer] = None,
        failure_service: Optional[PaymentFailureService] = None,
        confirmation: Optional[PurchaseConfirmationService] = None,
    ):
        self.settings = settings or get_payments_settings()
        self.decoder = decoder or CallbackDecoder(
            self.settings.mitec_key_hex.get_secret_value(),
            allow_synthetic=self.settings.mitec_allow_synthetic_callbacks,
        )
        self.reconciler = reconciler or ReconciliationService(self.settings)
        self.materializer = materializer or OrderMaterializer()
        self.failure_service = failure_service or PaymentFailureService()
        self._confirmation = confirmation
        self.session_repo = PaymentSessionRepository()
        self.order_repo = OrderRepository()

    @property
    def confirmation(self) -> PurchaseConfirmationService:
        if self._confirmation is None:
            self._confirmation = PurchaseConfirmationService(
                get_email_sender(), operator_email=app_settings.support_email
            )
        return self._confirmation

    # ------------------------------------------------------------------
    # Entradas
    # ------------------------------------------------------------------

    async def handle_form(
        self,
        session: AsyncSession,
        form: Mapping[str, str],
        *,
        token: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> CallbackOutcome:
        """Callback del navegador. GatewayError se propaga a la ruta."""
        decoded = self.decoder.decode(form)
        return await self.process(
            session, decoded, reference_hint=token, ip_address=ip_address, user_agent=user_agent
        )

    async def handle_webhook(
        self,
        session: AsyncSession,
        reference: str,
        *,
        xml_response: Optional[str] = None,
        parsed_data: Optional[Mapping[str, Any]] = None,
        status: Optional[PaymentResponseStatus] = None,
    ) -> CallbackOutcome:
        # xml_response junto a parsed_data es solo la copia de auditoría
        if parsed_data:
            decoded = decoded_from_parsed(reference, parsed_data, status, raw_xml=xml_response or "")
        elif xml_response:
            decoded = self.decoder.decode_xml(xml_response)
        else:
            decoded = decoded_from_parsed(reference, {}, status)
        return await self.process(session, decoded, reference_hint=reference)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def process(
        self,
        session: AsyncSession,
        decoded: DecodedCallback,
        *,
        reference_hint: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> CallbackOutcome:
        result = await self.reconciler.reconcile(
            session, decoded, reference_hint=reference_hint, ip_address=ip_address, user_agent=user_agent
        )
        payment_response = result.payment_response
        mitec_callbacks_total.labels(payment_response.payment_status).inc()

        if payment_response.status == PaymentResponseStatus.APPROVED:
            return await self._on_approved(session, result.created, payment_response, result.payment_session)

        if payment_response.status == PaymentResponseStatus.ERROR and result.created:
            await self.failure_service.compensate(session, payment_response)

        return CallbackOutcome(
            payment_response=payment_response,
            created=result.created,
            order_id=payment_response.order_id,
        )

    async def _on_approved(
        self,
        session: AsyncSession,
        created: bool,
        payment_response: PaymentResponse,
        payment_session: Optional[PaymentSession],
    ) -> CallbackOutcome:
        if payment_response.cart_id is None:
            logger.error(
                "order_materialize_skipped reference=%s reason=no_cart path=%s",
                payment_response.transaction_reference, payment_response.resolution_path,
            )
            return CallbackOutcome(payment_response=payment_response, created=created)

        if payment_session is None and payment_response.payment_session_id is not None:
            payment_session = await self.session_repo.get(session, payment_response.payment_session_id)

        try:
            materialized = await self.materializer.materialize(
                session,
                payment_response.cart_id,
                payment_response,
                payment_method=payment_session.payment_method if payment_session else None,
                customer_email=payment_session.customer_email if payment_session else None,
            )
        except OrderMaterializationError as e:
            logger.error(
                "order_materialize_failed reference=%s cart_id=%s code=%s error=%s",
                payment_response.transaction_reference, payment_response.cart_id, e.code, e,
            )
            return CallbackOutcome(payment_response=payment_response, created=created)

        return CallbackOutcome(
            payment_response=payment_response,
            created=created,
            order_id=materialized.order.id,
            order_created=materialized.created,
        )

    async def send_confirmation(self, session: AsyncSession, outcome: CallbackOutcome) -> int:
        """Después del commit; solo para órdenes recién creadas."""
        if not outcome.order_created or outcome.order_id is None:
            return 0
        order = await self.order_repo.get_with_items(session, outcome.order_id)
        if order is None:
            return 0
        return await self.confirmation.send(order, order.items)


__all__ = ["CallbackService", "CallbackOutcome", "decoded_from_parsed"]
# Fin del archivo backend/app/modules/payments/services/callback_service.py
