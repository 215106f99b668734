# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/schemas/__init__.py
"""

from .mitec_schemas import (
    BillingInput,
    CardInput,
    CheckoutRequest,
    CheckoutResponse,
    PaymentConfigResponse,
    WebhookRequest,
    WebhookResponse,
)

__all__ = [
    "CardInput",
    "BillingInput",
    "CheckoutRequest",
    "CheckoutResponse",
    "PaymentConfigResponse",
    "WebhookRequest",
    "WebhookResponse",
]
