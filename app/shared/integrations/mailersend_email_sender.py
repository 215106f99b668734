# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/mailersend_email_sender.py

Implementación de envío de correos usando MailerSend API.

Autor: Ixchel Beristain
Creado: 2026-10-08

Notas:
- MailerSend responde 202 Accepted cuando encola el mensaje.
- Cualquier otro status, timeout o error de red se traduce a
  EmailDeliveryError; el llamador decide si es best-effort.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

import httpx

from app.shared.integrations.email_sender import EmailDeliveryError

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)

MAILERSEND_API_URL = "https://api.mailersend.com/v1/email"


class MailerSendEmailSender:
    """Envío de correos usando MailerSend API."""

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str = "Readymarket",
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ValueError("MAILERSEND_API_KEY es requerido")
        if not from_email:
            raise ValueError("MAILERSEND_FROM_EMAIL es requerido")

        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: BaseAppSettings) -> "MailerSendEmailSender":
        api_key = ""
        if settings.mailersend_api_key:
            api_key = settings.mailersend_api_key.get_secret_value().strip()

        return cls(
            api_key=api_key,
            from_email=(settings.mailersend_from_email or "").strip(),
            from_name=(settings.mailersend_from_name or "Readymarket").strip(),
            timeout=settings.email_timeout_sec or 30,
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> None:
        payload = {
            "from": {"email": self.from_email, "name": self.from_name},
            "to": [{"email": to_email}],
            "subject": subject,
            "html": html_body,
            "text": text_body or "",
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(MAILERSEND_API_URL, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            logger.error("[MailerSend] timeout: to=%s error=%s", to_email, e)
            raise EmailDeliveryError(f"MailerSend timeout: {e}") from e
        except httpx.RequestError as e:
            logger.error("[MailerSend] request error: to=%s error=%s", to_email, e)
            raise EmailDeliveryError(f"MailerSend request error: {e}") from e

        if response.status_code == 202:
            logger.info(
                "[MailerSend] sent ok: to=%s message_id=%s",
                to_email,
                response.headers.get("X-Message-Id", "accepted"),
            )
            return

        logger.error(
            "[MailerSend] send failed: to=%s status=%d body=%s",
            to_email,
            response.status_code,
            response.text[:500],
        )
        raise EmailDeliveryError(
            f"MailerSend API error: {response.status_code} - {response.text[:200]}"
        )


__all__ = ["MailerSendEmailSender", "MAILERSEND_API_URL"]
# Fin del archivo backend/app/shared/integrations/mailersend_email_sender.py
