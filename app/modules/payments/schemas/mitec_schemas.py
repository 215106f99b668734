# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/mitec_schemas.py

Esquemas Pydantic de la API de pagos MITEC.

Los datos de tarjeta se normalizan al validar:
- titular en mayúsculas y sin espacios repetidos
- número y CVV solo dígitos
- mes y año a dos dígitos ("7" -> "07", "2027" -> "27")

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.modules.payments.enums import PaymentResponseStatus


def _digits(value: str) -> str:
    return "".join(ch for ch in str(value) if ch.isdigit())


class CardInput(BaseModel):
    holder_name: str = Field(min_length=2, max_length=100)
    number: str = Field(description="PAN; se aceptan espacios o guiones")
    exp_month: str
    exp_year: str
    cvv: str

    @field_validator("holder_name")
    @classmethod
    def _upper_holder(cls, v: str) -> str:
        return " ".join(v.split()).upper()

    @field_validator("number")
    @classmethod
    def _card_number(cls, v: str) -> str:
        digits = _digits(v)
        if not 13 <= len(digits) <= 19:
            raise ValueError("Número de tarjeta inválido")
        return digits

    @field_validator("exp_month")
    @classmethod
    def _month(cls, v: str) -> str:
        digits = _digits(v)
        if not digits or not 1 <= int(digits) <= 12:
            raise ValueError("Mes de expiración inválido")
        return digits.zfill(2)[-2:]

    @field_validator("exp_year")
    @classmethod
    def _year(cls, v: str) -> str:
        digits = _digits(v)
        if len(digits) not in (2, 4):
            raise ValueError("Año de expiración inválido")
        return digits[-2:]

    @field_validator("cvv")
    @classmethod
    def _cvv(cls, v: str) -> str:
        digits = _digits(v)
        if len(digits) not in (3, 4):
            raise ValueError("CVV inválido")
        return digits

    def __repr__(self) -> str:
        return f"CardInput(holder_name={self.holder_name!r}, last_four={self.number[-4:]!r})"


class BillingInput(BaseModel):
    phone: str = ""
    email: str = ""

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return _digits(v)


class CheckoutRequest(BaseModel):
    cart_id: int = Field(gt=0)
    customer_account_id: Optional[int] = None
    payment_method: str = Field(default="credit_card", max_length=32)
    customer_email: Optional[str] = None
    card: CardInput
    billing: BillingInput = Field(default_factory=BillingInput)


class CheckoutResponse(BaseModel):
    reference: str
    redirect_url: str = Field(description="Ruta que sirve el formulario auto-submit")
    amount: Decimal
    currency: str
    expires_at: datetime
    simulated: bool = False


class PaymentConfigResponse(BaseModel):
    currency: str
    min_amount: Decimal
    max_amount: Decimal
    environment: str
    simulated_gateway: bool


class WebhookRequest(BaseModel):
    """Callback reenviado por un servicio interno (XML ya descifrado)."""

    model_config = ConfigDict(extra="ignore")

    transaction_reference: str = Field(min_length=1, max_length=64)
    xml_response: Optional[str] = None
    parsed_data: Optional[dict[str, Any]] = None
    status: Optional[PaymentResponseStatus] = None


class WebhookResponse(BaseModel):
    payment_response_id: int
    payment_status: str
    order_id: Optional[int] = None


__all__ = [
    "CardInput",
    "BillingInput",
    "CheckoutRequest",
    "CheckoutResponse",
    "PaymentConfigResponse",
    "WebhookRequest",
    "WebhookResponse",
]
# Fin del archivo backend/app/modules/payments/schemas/mitec_schemas.py
