# -*- coding: utf-8 -*-
"""
backend/app/shared/integrations/email_sender.py

Factory unificado para EmailSender.
Soporta dos modos:
- console: stub que solo loguea (desarrollo/tests)
- api: envío via MailerSend

Los consumidores (confirmación de compra, alertas de aprovisionamiento)
solo dependen del protocolo IEmailSender.send_email().

Autor: Ixchel Beristain
Actualizado: 2026-10-08
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from app.shared.config.settings_base import BaseAppSettings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """El proveedor rechazó el mensaje o no respondió a tiempo."""


class IEmailSender(Protocol):
    """Protocolo para implementaciones de email sender."""
    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> None: ...


class StubEmailSender:
    """Implementación que no envía correos; solo hace logging (modo console)."""

    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> None:
        self.sent.append({"to": to_email, "subject": subject, "html": html_body})
        logger.info("[CONSOLE EMAIL] → %s | %s", to_email, subject)


class EmailSender:
    """
    Factory unificado para selección de email sender.

    Ejemplos de configuración:
    - Desarrollo: EMAIL_MODE=console
    - MailerSend: EMAIL_MODE=api + MAILERSEND_API_KEY + MAILERSEND_FROM_EMAIL
    """

    @staticmethod
    def from_settings(settings: BaseAppSettings) -> IEmailSender:
        """
        Crea el email sender apropiado según settings.

        Raises:
            ValueError: si email_mode=api pero el proveedor no es soportado
        """
        mode = (settings.email_mode or "console").strip().lower()
        provider = (settings.email_provider or "").strip().lower()

        if mode in ("console", ""):
            return StubEmailSender()

        if mode == "api":
            if provider in ("mailersend", ""):
                from app.shared.integrations.mailersend_email_sender import MailerSendEmailSender
                return MailerSendEmailSender.from_settings(settings)
            raise ValueError(
                f"EMAIL_PROVIDER '{provider}' no soportado. "
                f"Configure EMAIL_PROVIDER=mailersend o cambie EMAIL_MODE."
            )

        if settings.is_prod:
            raise ValueError(f"EMAIL_MODE '{mode}' no reconocido. Configure EMAIL_MODE=console|api")

        logger.warning("[EmailSender] EMAIL_MODE=%r no reconocido, usando console (solo dev)", mode)
        return StubEmailSender()


def get_email_sender() -> IEmailSender:
    from app.shared.config import get_settings
    return EmailSender.from_settings(get_settings())


__all__ = [
    "EmailDeliveryError",
    "IEmailSender",
    "StubEmailSender",
    "EmailSender",
    "get_email_sender",
]
# Fin del archivo backend/app/shared/integrations/email_sender.py
