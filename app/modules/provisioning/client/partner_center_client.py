# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/client/partner_center_client.py

Cliente HTTP async de Microsoft Partner Center.

Operaciones:
- get_token()                       GET  {token_url}            -> {"item": {"token": ...}}
- create_cart(customer, items)      POST /customers/{id}/carts
- checkout(customer, cart_id)       POST /customers/{id}/carts/{cartId}/checkout
- set_usage_budget(customer, amt)   PATCH /customers/{id}/usagebudget

Cada llamada tiene su propio timeout. Un timeout es un fallo del intento
(no se reintenta dentro del mismo intento). Los fallos se devuelven como
ProvisioningError con el detalle estructurado (HTTP status, código,
descripción, MS-CorrelationId, MS-RequestId, cuerpo crudo).

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Optional, Protocol

import httpx

from app.modules.provisioning.errors import (
    BudgetResult,
    ProvisioningError,
    ProvisioningErrorDetail,
    ProvisioningStep,
)
from .token_cache import TokenCache

logger = logging.getLogger(__name__)


class IPartnerCenterClient(Protocol):
    async def get_token(self) -> str: ...

    async def create_cart(self, customer_id: str, line_items: list[dict[str, Any]], token: str) -> dict[str, Any]: ...

    async def checkout(self, customer_id: str, cart_id: str, token: str) -> dict[str, Any]: ...

    async def set_usage_budget(self, customer_id: str, amount: Decimal, token: str) -> BudgetResult: ...


def _json_or_none(response: httpx.Response) -> Optional[dict[str, Any]]:
    try:
        data = response.json()
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def error_detail_from_response(
    response: httpx.Response,
    message: str,
    *,
    endpoint: str,
    error_type: str = "microsoft_partner_center",
) -> ProvisioningErrorDetail:
    """Extrae code/description y los ids de correlación de una respuesta de error."""
    body = _json_or_none(response) or {}
    return ProvisioningErrorDetail(
        message=message,
        error_type=error_type,
        http_status=response.status_code,
        error_code=str(body["code"]) if body.get("code") is not None else None,
        description=body.get("description"),
        correlation_id=response.headers.get("MS-CorrelationId"),
        request_id=response.headers.get("MS-RequestId"),
        endpoint=endpoint,
        raw_response=response.text,
    )


class PartnerCenterClient:
    """Cliente real de Partner Center."""

    def __init__(
        self,
        base_url: str,
        token_url: str,
        token_api_key: str = "",
        *,
        token_cache: Optional[TokenCache] = None,
        token_timeout: float = 30.0,
        create_cart_timeout: float = 120.0,
        checkout_timeout: float = 180.0,
        budget_timeout: float = 90.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_url = token_url
        self._token_api_key = token_api_key
        self._token_cache = token_cache or TokenCache()
        self._token_timeout = token_timeout
        self._create_cart_timeout = create_cart_timeout
        self._checkout_timeout = checkout_timeout
        self._budget_timeout = budget_timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "PartnerCenterClient":
        return cls(
            base_url=settings.partner_center_base_url,
            token_url=settings.partner_center_token_url,
            token_api_key=settings.partner_center_token_api_key.get_secret_value(),
            token_cache=TokenCache(ttl_seconds=settings.token_cache_ttl_seconds),
            token_timeout=settings.token_timeout_seconds,
            create_cart_timeout=settings.create_cart_timeout_seconds,
            checkout_timeout=settings.checkout_timeout_seconds,
            budget_timeout=settings.budget_timeout_seconds,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def _send(
        self,
        timeout: float,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            return await client.request(method, url, headers=headers, json=payload)

    async def _request(
        self,
        step: ProvisioningStep,
        timeout: float,
        method: str,
        url: str,
        *,
        headers: Optional[dict[str, str]] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """_send + traducción de timeout/red a ProvisioningError."""
        try:
            return await self._send(timeout, method, url, headers=headers, payload=payload)
        except httpx.TimeoutException as e:
            logger.error("partner_center_timeout step=%s url=%s timeout=%s", step, url, timeout)
            raise ProvisioningError(
                step,
                ProvisioningErrorDetail(message=f"Timeout tras {timeout}s", error_type="timeout", endpoint=url),
            ) from e
        except httpx.RequestError as e:
            logger.error("partner_center_request_error step=%s url=%s error=%s", step, url, e)
            raise ProvisioningError(
                step,
                ProvisioningErrorDetail(message=f"Error de red: {e}", error_type="network", endpoint=url),
            ) from e

    @staticmethod
    def _auth_headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    async def _forget_rejected_token(self, response: httpx.Response) -> None:
        """401: el siguiente intento pide un token nuevo."""
        if response.status_code == 401:
            logger.warning("partner_center_token_rejected url=%s", response.request.url)
            await self._token_cache.invalidate()

    # ------------------------------------------------------------------
    # Token
    # ------------------------------------------------------------------

    async def get_token(self) -> str:
        cached = await self._token_cache.get()
        if cached:
            return cached

        if not self.token_url:
            raise ProvisioningError(
                ProvisioningStep.TOKEN,
                ProvisioningErrorDetail(
                    message="PARTNER_CENTER_TOKEN_URL no configurado",
                    error_type="token_authentication",
                ),
            )

        headers = {"x-api-key": self._token_api_key} if self._token_api_key else None
        response = await self._request(ProvisioningStep.TOKEN, self._token_timeout, "GET", self.token_url, headers=headers)

        if not response.is_success:
            raise ProvisioningError(
                ProvisioningStep.TOKEN,
                error_detail_from_response(
                    response,
                    f"No se obtuvo token: HTTP {response.status_code}",
                    endpoint=self.token_url,
                    error_type="token_authentication",
                ),
            )

        body = _json_or_none(response) or {}
        token = (body.get("item") or {}).get("token")
        if not token:
            raise ProvisioningError(
                ProvisioningStep.TOKEN,
                ProvisioningErrorDetail(
                    message="Respuesta de token inválida",
                    error_type="token_authentication",
                    http_status=response.status_code,
                    endpoint=self.token_url,
                    raw_response=response.text,
                ),
            )

        await self._token_cache.set(token)
        logger.info("partner_center_token_refreshed")
        return token

    # ------------------------------------------------------------------
    # Carrito y checkout
    # ------------------------------------------------------------------

    async def create_cart(self, customer_id: str, line_items: list[dict[str, Any]], token: str) -> dict[str, Any]:
        url = f"{self.base_url}/customers/{customer_id}/carts"
        response = await self._request(
            ProvisioningStep.CREATE_CART,
            self._create_cart_timeout,
            "POST",
            url,
            headers=self._auth_headers(token),
            payload={"lineItems": line_items},
        )

        await self._forget_rejected_token(response)
        if not response.is_success:
            raise ProvisioningError(
                ProvisioningStep.CREATE_CART,
                error_detail_from_response(
                    response, f"No se creó el carrito: HTTP {response.status_code}", endpoint=url
                ),
            )

        data = _json_or_none(response)
        if not data or not data.get("id"):
            raise ProvisioningError(
                ProvisioningStep.CREATE_CART,
                ProvisioningErrorDetail(
                    message="Respuesta de carrito sin id",
                    http_status=response.status_code,
                    endpoint=url,
                    raw_response=response.text,
                ),
            )

        logger.info("partner_center_cart_created customer=%s cart_id=%s lines=%d", customer_id, data["id"], len(line_items))
        return data

    async def checkout(self, customer_id: str, cart_id: str, token: str) -> dict[str, Any]:
        url = f"{self.base_url}/customers/{customer_id}/carts/{cart_id}/checkout"
        response = await self._request(
            ProvisioningStep.CHECKOUT, self._checkout_timeout, "POST", url, headers=self._auth_headers(token)
        )

        await self._forget_rejected_token(response)
        if not response.is_success:
            raise ProvisioningError(
                ProvisioningStep.CHECKOUT,
                error_detail_from_response(
                    response, f"Checkout rechazado: HTTP {response.status_code}", endpoint=url
                ),
            )

        data = _json_or_none(response)
        if data is None:
            raise ProvisioningError(
                ProvisioningStep.CHECKOUT,
                ProvisioningErrorDetail(
                    message="Respuesta de checkout ilegible",
                    http_status=response.status_code,
                    endpoint=url,
                    raw_response=response.text,
                ),
            )

        # 2xx con cuerpo de error
        if data.get("code"):
            raise ProvisioningError(
                ProvisioningStep.CHECKOUT,
                error_detail_from_response(
                    response, f"Checkout con error {data.get('code')}", endpoint=url
                ),
            )

        order_errors = data.get("orderErrors") or []
        if order_errors:
            first = order_errors[0] if isinstance(order_errors[0], dict) else {}
            raise ProvisioningError(
                ProvisioningStep.CHECKOUT,
                ProvisioningErrorDetail(
                    message=f"Partner Center orderErrors: {first.get('code', 'unknown')}",
                    http_status=response.status_code,
                    error_code=str(first.get("code")) if first.get("code") is not None else None,
                    description=first.get("description"),
                    correlation_id=response.headers.get("MS-CorrelationId"),
                    request_id=response.headers.get("MS-RequestId"),
                    endpoint=url,
                    raw_response=response.text,
                ),
            )

        logger.info("partner_center_checkout_ok customer=%s cart_id=%s", customer_id, cart_id)
        return data

    # ------------------------------------------------------------------
    # Presupuesto (best-effort)
    # ------------------------------------------------------------------

    async def set_usage_budget(self, customer_id: str, amount: Decimal, token: str) -> BudgetResult:
        url = f"{self.base_url}/customers/{customer_id}/usagebudget"
        payload = {"Amount": float(amount), "Attributes": {"ObjectType": "SpendingBudget"}}
        try:
            response = await self._send(
                self._budget_timeout, "PATCH", url, headers=self._auth_headers(token), payload=payload
            )
        except httpx.HTTPError as e:
            logger.warning("partner_center_budget_failed customer=%s amount=%s error=%s", customer_id, amount, e)
            return BudgetResult(applied=False, amount=amount, error=str(e) or type(e).__name__)

        if not response.is_success:
            logger.warning(
                "partner_center_budget_rejected customer=%s amount=%s status=%d",
                customer_id, amount, response.status_code,
            )
            return BudgetResult(
                applied=False,
                amount=amount,
                http_status=response.status_code,
                error=response.text[:500],
            )

        logger.info("partner_center_budget_applied customer=%s amount=%s", customer_id, amount)
        return BudgetResult(applied=True, amount=amount, http_status=response.status_code)


__all__ = ["IPartnerCenterClient", "PartnerCenterClient", "error_detail_from_response"]
# Fin del archivo backend/app/modules/provisioning/client/partner_center_client.py
