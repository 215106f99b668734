# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/whatsapp_sender.py

Envío de mensajes de WhatsApp vía Graph API (Meta) para alertas operativas.

Estrategia por destinatario:
1. Intentar con la plantilla aprobada (template + parámetro de cuerpo).
2. Si la plantilla es rechazada, reenviar como mensaje de texto con el
   prefijo "Has recibido un correo con el siguiente mensaje:".
3. Si ambos fallan, WhatsAppDeliveryError.

Autor: Ixchel Beristain
Fecha: 2026-10-09
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

TEXT_FALLBACK_PREFIX = "Has recibido un correo con el siguiente mensaje:\n\n"


class WhatsAppDeliveryError(RuntimeError):
    """Graph API rechazó tanto la plantilla como el texto libre."""


class WhatsAppSender:
    """Cliente mínimo de la Graph API para mensajes salientes."""

    def __init__(
        self,
        token: str,
        phone_id: str,
        template_name: str,
        api_url: str = "https://graph.facebook.com/v18.0",
        language_code: str = "es",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.phone_id = phone_id
        self.template_name = template_name
        self.api_url = api_url.rstrip("/")
        self.language_code = language_code
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "WhatsAppSender":
        """Desde ProvisioningSettings (WHATSAPP_TOKEN, WHATSAPP_PHONE_ID, ...)."""
        token = settings.whatsapp_token.get_secret_value() if settings.whatsapp_token else ""
        return cls(
            token=token,
            phone_id=settings.whatsapp_phone_id,
            template_name=settings.whatsapp_template_name,
            api_url=settings.whatsapp_api_url,
            timeout=settings.whatsapp_timeout_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.token and self.phone_id)

    @property
    def messages_url(self) -> str:
        return f"{self.api_url}/{self.phone_id}/messages"

    def _template_payload(self, to: str, message: str) -> dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "template",
            "template": {
                "name": self.template_name,
                "language": {"code": self.language_code},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": message}],
                    }
                ],
            },
        }

    @staticmethod
    def _text_payload(to: str, message: str) -> dict[str, Any]:
        return {
            "messaging_product": "whatsapp",
            "to": to,
            "type": "text",
            "text": {"body": TEXT_FALLBACK_PREFIX + message},
        }

    async def send(self, to: str, message: str) -> str:
        """
        Envía un mensaje a un número. Devuelve el formato usado
        ("template" o "text").

        Raises:
            WhatsAppDeliveryError: si ambos formatos fallan
        """
        headers = {"Authorization": f"Bearer {self.token}"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.messages_url, json=self._template_payload(to, message), headers=headers
                )
            except httpx.RequestError as e:
                raise WhatsAppDeliveryError(f"WhatsApp request error: {e}") from e

            if response.is_success:
                logger.info("whatsapp_sent to=%s format=template", to)
                return "template"

            logger.warning(
                "whatsapp_template_rejected to=%s status=%d body=%s",
                to, response.status_code, response.text[:300],
            )

            try:
                response = await client.post(
                    self.messages_url, json=self._text_payload(to, message), headers=headers
                )
            except httpx.RequestError as e:
                raise WhatsAppDeliveryError(f"WhatsApp request error: {e}") from e

        if not response.is_success:
            raise WhatsAppDeliveryError(f"WhatsApp API error: {response.status_code} {response.text[:200]}")

        logger.info("whatsapp_sent to=%s format=text", to)
        return "text"


__all__ = ["WhatsAppSender", "WhatsAppDeliveryError", "TEXT_FALLBACK_PREFIX"]
# Fin del archivo backend/app/shared/integrations/whatsapp_sender.py
