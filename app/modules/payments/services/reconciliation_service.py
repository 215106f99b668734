# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/services/reconciliation_service.py

Conciliación de un callback decodificado con el contexto que lo originó.

Reglas:
- Idempotencia por transaction_reference: si ya existe una PaymentResponse
  se devuelve sin cambios. El INSERT va protegido por la restricción UNIQUE
  (ver PaymentResponseRepository.insert_idempotent).
- Resolución del carrito, en orden:
    1. sesión viva con la referencia exacta
    2. sesión viva cuya referencia comparte la base (antes del primer '_')
    3. carrito activo actualizado más recientemente dentro de la ventana
       CART_FALLBACK_LOOKBACK_HOURS (heurística, se registra en WARNING)
- Monto: total de la sesión/carrito; si no hay, el monto que devuelve la
  pasarela.

El commit lo hace el llamador.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import PaymentsSettings, get_payments_settings
from app.shared.database.base import utcnow
from app.modules.orders.models import Cart
from app.modules.orders.repositories import CartRepository
from app.modules.payments.enums import ResolutionPath
from app.modules.payments.gateway.callback_decoder import DecodedCallback
from app.modules.payments.gateway.errors import MalformedPayloadError
from app.modules.payments.gateway.references import reference_base
from app.modules.payments.models import PaymentResponse, PaymentSession
from app.modules.payments.repositories import PaymentResponseRepository, PaymentSessionRepository
from app.observability.prom import payment_reconciliation_total

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    path: ResolutionPath
    payment_session: Optional[PaymentSession] = None
    cart: Optional[Cart] = None

    @property
    def cart_id(self) -> Optional[int]:
        if self.payment_session is not None:
            return self.payment_session.cart_id
        return self.cart.id if self.cart is not None else None


@dataclass(frozen=True)
class ReconciliationResult:
    payment_response: PaymentResponse
    created: bool
    payment_session: Optional[PaymentSession] = None


def mask_card_number(value: str) -> str:
    digits = "".join(ch for ch in value if ch.isdigit())
    if not digits:
        return ""
    return f"****{digits[-4:]}"


def safe_parsed_fields(decoded: DecodedCallback) -> dict[str, str]:
    """Mapa de campos para auditoría sin el número de tarjeta completo."""
    data = decoded.as_dict()
    if data.get("cc_number"):
        data["cc_number"] = mask_card_number(data["cc_number"])
    return data


class ReconciliationService:
    def __init__(
        self,
        settings: Optional[PaymentsSettings] = None,
        response_repo: Optional[PaymentResponseRepository] = None,
        session_repo: Optional[PaymentSessionRepository] = None,
        cart_repo: Optional[CartRepository] = None,
    ):
        self.settings = settings or get_payments_settings()
        self.response_repo = response_repo or PaymentResponseRepository()
        self.session_repo = session_repo or PaymentSessionRepository()
        self.cart_repo = cart_repo or CartRepository()

    async def reconcile(
        self,
        session: AsyncSession,
        decoded: DecodedCallback,
        *,
        reference_hint: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ReconciliationResult:
        reference = decoded.reference or (reference_hint or "").strip()
        if not reference:
            raise MalformedPayloadError("Callback sin referencia de transacción")

        existing = await self.response_repo.get_by_reference(session, reference)
        if existing is not None:
            logger.info(
                "payment_response_duplicate reference=%s payment_response_id=%s status=%s",
                reference, existing.id, existing.payment_status,
            )
            return ReconciliationResult(payment_response=existing, created=False)

        resolution = await self.resolve(session, reference)
        values = self._response_values(reference, decoded, resolution, ip_address, user_agent)

        payment_response, created = await self.response_repo.insert_idempotent(session, **values)
        if created:
            payment_reconciliation_total.labels(resolution.path.value).inc()
            logger.info(
                "payment_response_reconciled reference=%s path=%s status=%s cart_id=%s amount=%s",
                reference, resolution.path.value, payment_response.payment_status,
                payment_response.cart_id, payment_response.amount,
            )
        return ReconciliationResult(
            payment_response=payment_response,
            created=created,
            payment_session=resolution.payment_session if created else None,
        )

    async def resolve(self, session: AsyncSession, reference: str) -> Resolution:
        now = utcnow()

        payment_session = await self.session_repo.get_live_by_reference(session, reference, now)
        if payment_session is not None:
            return Resolution(ResolutionPath.EXACT_SESSION, payment_session=payment_session)

        payment_session = await self.session_repo.find_live_by_prefix(session, reference_base(reference), now)
        if payment_session is not None:
            logger.info(
                "payment_session_prefix_match reference=%s session_reference=%s",
                reference, payment_session.transaction_reference,
            )
            return Resolution(ResolutionPath.PREFIX_SESSION, payment_session=payment_session)

        since = now - timedelta(hours=self.settings.cart_fallback_lookback_hours)
        cart = await self.cart_repo.find_recent_active(session, since)
        if cart is not None:
            logger.warning(
                "payment_session_fallback_cart reference=%s cart_id=%s user_id=%s lookback_hours=%d",
                reference, cart.id, cart.user_id, self.settings.cart_fallback_lookback_hours,
            )
            return Resolution(ResolutionPath.CART_FALLBACK, cart=cart)

        logger.warning("payment_session_unresolved reference=%s", reference)
        return Resolution(ResolutionPath.UNRESOLVED)

    def _response_values(
        self,
        reference: str,
        decoded: DecodedCallback,
        resolution: Resolution,
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> dict[str, Any]:
        payment_session, cart = resolution.payment_session, resolution.cart

        amount: Optional[Decimal] = None
        currency = self.settings.mitec_default_currency
        user_id = customer_account_id = None
        if payment_session is not None:
            amount = payment_session.amount
            currency = payment_session.currency
            user_id = payment_session.user_id
            customer_account_id = payment_session.customer_account_id
        elif cart is not None:
            amount = cart.total_amount
            currency = cart.currency
            user_id = cart.user_id
            customer_account_id = cart.customer_account_id
        if amount is None:
            amount = decoded.amount

        return {
            "transaction_reference": reference,
            "payment_session_id": payment_session.id if payment_session is not None else None,
            "cart_id": resolution.cart_id,
            "user_id": user_id,
            "customer_account_id": customer_account_id,
            "resolution_path": resolution.path.value,
            "payment_status": decoded.status.value,
            "amount": amount,
            "currency": currency,
            "payment_folio": decoded.get("payment_folio") or None,
            "payment_response": decoded.get("payment_response") or None,
            "auth_code": decoded.get("payment_auth") or decoded.get("auth_bancaria") or None,
            "cd_response": decoded.get("cd_response") or None,
            "cd_error": decoded.get("cd_error") or None,
            "nb_error": decoded.get("nb_error") or None,
            "voucher": decoded.get("voucher") or None,
            "mitec_datetime": decoded.mitec_datetime,
            "r3ds_response_code": decoded.get("r3ds_responseCode") or None,
            "r3ds_response_description": decoded.get("r3ds_responseDescription") or None,
            "r3ds_eci": decoded.get("r3ds_eci") or None,
            "r3ds_trans_status": decoded.get("r3ds_transStatus") or None,
            "card_last_four": decoded.card_last_four or None,
            "card_type": decoded.get("cc_type") or None,
            "raw_xml": decoded.raw_xml,
            "parsed_fields": safe_parsed_fields(decoded),
            "is_synthetic": decoded.is_synthetic,
            "ip_address": ip_address,
            "user_agent": (user_agent or "")[:500] or None,
        }


__all__ = [
    "ReconciliationService",
    "ReconciliationResult",
    "Resolution",
    "mask_card_number",
    "safe_parsed_fields",
]
# Fin del archivo backend/app/modules/payments/services/reconciliation_service.py
