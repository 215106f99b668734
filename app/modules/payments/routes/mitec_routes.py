# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/mitec_routes.py

Superficie HTTP de la pasarela MITEC.

Endpoints (prefijo /api/payments/mitec):
- POST /checkout              inicia el pago y guarda la PaymentSession
- GET  /sessions/{reference}  formulario auto-submit mientras la sesión vive
- GET  /config                moneda, límites y entorno
- POST /callback              respuesta de MITEC (form) -> 303 al frontend
- POST /webhook               callback reenviado por servicio interno (Bearer)

El callback nunca responde 5xx a la pasarela por un payload ilegible:
GatewayError se registra y el cliente va a la página de resultado con
status=error&error=PROCESSING_ERROR.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import get_payments_settings, settings as app_settings
from app.shared.database.database import get_async_session
from app.shared.internal_auth import InternalServiceAuth
from app.modules.payments.gateway.errors import GatewayError
from app.modules.payments.repositories import PaymentSessionRepository
from app.modules.payments.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentConfigResponse,
    WebhookRequest,
    WebhookResponse,
)
from app.modules.payments.services import CallbackService, CheckoutError, CheckoutService
from app.observability.prom import mitec_callbacks_total

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments/mitec", tags=["payments-mitec"])

PROCESSING_ERROR = "PROCESSING_ERROR"


def get_checkout_service() -> CheckoutService:
    return CheckoutService()


def get_callback_service() -> CallbackService:
    return CallbackService()


def result_url(reference: str, status_value: str, error: Optional[str] = None) -> str:
    params = {"reference": reference, "status": status_value}
    if error:
        params["error"] = error
    base = (get_payments_settings().frontend_url or "").rstrip("/")
    return f"{base}/payment-result?{urlencode(params)}"


def _client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


# =============================================================================
# Checkout
# =============================================================================

@router.post(
    "/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Iniciar pago con tarjeta",
)
async def start_checkout(
    payload: CheckoutRequest,
    request: Request,
    session: AsyncSession = Depends(get_async_session),
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutResponse:
    try:
        result = await service.start(session, payload, browser_ip=_client_ip(request))
    except CheckoutError as e:
        await session.rollback()
        logger.info("checkout_rejected cart_id=%s code=%s", payload.cart_id, e.code)
        raise HTTPException(status_code=e.status_code, detail={"code": e.code, "message": str(e)})

    await session.commit()
    ps = result.payment_session
    return CheckoutResponse(
        reference=ps.transaction_reference,
        redirect_url=f"/api/payments/mitec/sessions/{ps.transaction_reference}",
        amount=ps.amount,
        currency=ps.currency,
        expires_at=ps.expires_at,
        simulated=result.simulated,
    )


@router.get("/sessions/{reference}", response_class=HTMLResponse, summary="Formulario de pago")
async def get_session_form(
    reference: str,
    session: AsyncSession = Depends(get_async_session),
) -> HTMLResponse:
    payment_session = await PaymentSessionRepository().get_live_by_reference(session, reference)
    if payment_session is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sesión de pago no encontrada o expirada")
    return HTMLResponse(content=payment_session.html_form, headers={"Cache-Control": "no-store"})


@router.get("/config", response_model=PaymentConfigResponse, summary="Configuración pública de pagos")
async def get_payment_config() -> PaymentConfigResponse:
    s = get_payments_settings()
    return PaymentConfigResponse(
        currency=s.mitec_default_currency,
        min_amount=s.min_payment_amount,
        max_amount=s.max_payment_amount,
        environment=app_settings.python_env,
        simulated_gateway=s.mitec_simulate_gateway,
    )


# =============================================================================
# Callback
# =============================================================================

@router.post("/callback", summary="Respuesta de MITEC", response_class=RedirectResponse)
async def mitec_callback(
    request: Request,
    token: Optional[str] = Query(default=None),
    strResponse: Optional[str] = Form(default=None),
    strIdCompany: Optional[str] = Form(default=None),
    strIdMerchant: Optional[str] = Form(default=None),
    fake_mode: Optional[str] = Form(default=None),
    xml: Optional[str] = Form(default=None),
    reference: Optional[str] = Form(default=None),
    session: AsyncSession = Depends(get_async_session),
    service: CallbackService = Depends(get_callback_service),
) -> RedirectResponse:
    form = {
        "strResponse": strResponse or "",
        "strIdCompany": strIdCompany or "",
        "strIdMerchant": strIdMerchant or "",
        "fake_mode": fake_mode or "",
        "xml": xml or "",
        "reference": reference or "",
    }
    hint = token or reference or ""

    try:
        outcome = await service.handle_form(
            session,
            form,
            token=hint,
            ip_address=_client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )
        await session.commit()
    except GatewayError as e:
        await session.rollback()
        mitec_callbacks_total.labels("rejected").inc()
        logger.error(
            "mitec_callback_rejected reference=%s code=%s error=%s excerpt=%s",
            hint, e.code, e, e.raw_excerpt or "",
        )
        return RedirectResponse(
            result_url(hint, "error", PROCESSING_ERROR), status_code=status.HTTP_303_SEE_OTHER
        )

    await service.send_confirmation(session, outcome)
    logger.info(
        "mitec_callback_processed reference=%s status=%s order_id=%s duplicate=%s",
        outcome.reference, outcome.status.value, outcome.order_id, not outcome.created,
    )
    return RedirectResponse(
        result_url(outcome.reference, outcome.status.redirect_status), status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/webhook", response_model=WebhookResponse, summary="Callback reenviado (interno)")
async def mitec_webhook(
    payload: WebhookRequest,
    _auth: InternalServiceAuth,
    session: AsyncSession = Depends(get_async_session),
    service: CallbackService = Depends(get_callback_service),
) -> WebhookResponse:
    try:
        outcome = await service.handle_webhook(
            session,
            payload.transaction_reference,
            xml_response=payload.xml_response,
            parsed_data=payload.parsed_data,
            status=payload.status,
        )
        await session.commit()
    except GatewayError as e:
        await session.rollback()
        mitec_callbacks_total.labels("rejected").inc()
        logger.error("mitec_webhook_rejected reference=%s code=%s error=%s", payload.transaction_reference, e.code, e)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail={"code": e.code, "message": str(e)})

    await service.send_confirmation(session, outcome)
    return WebhookResponse(
        payment_response_id=outcome.payment_response.id,
        payment_status=outcome.status.value,
        order_id=outcome.order_id,
    )


__all__ = ["router", "get_checkout_service", "get_callback_service", "result_url"]
# Fin del archivo backend/app/modules/payments/routes/mitec_routes.py
