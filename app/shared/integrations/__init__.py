# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/__init__.py

Clientes de integración con servicios externos (correo y WhatsApp).
"""

from .email_sender import (
    EmailDeliveryError,
    EmailSender,
    IEmailSender,
    StubEmailSender,
    get_email_sender,
)
from .whatsapp_sender import WhatsAppDeliveryError, WhatsAppSender

__all__ = [
    "EmailDeliveryError",
    "EmailSender",
    "IEmailSender",
    "StubEmailSender",
    "get_email_sender",
    "WhatsAppDeliveryError",
    "WhatsAppSender",
]
