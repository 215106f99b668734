# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/enums/payment_response_status_enum.py

Estado de una respuesta de la pasarela (PaymentResponse.payment_status).
Un rechazo bancario es ERROR como dato, no como excepción.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from enum import StrEnum


class PaymentResponseStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    ERROR = "error"

    @property
    def redirect_status(self) -> str:
        """Estado grueso que ve el cliente en /payment-result."""
        return {
            PaymentResponseStatus.APPROVED: "success",
            PaymentResponseStatus.ERROR: "error",
            PaymentResponseStatus.PENDING: "pending",
        }[self]


__all__ = ["PaymentResponseStatus"]

# Fin del archivo backend/app/modules/payments/enums/payment_response_status_enum.py
