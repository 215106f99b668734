# -*- coding: utf-8 -*-
"""
backend/app/modules/notifications/services/notification_fanout.py

Fan-out de alertas operativas: cada destinatario de cada canal se
intenta por separado. Un fallo en un destinatario o canal se registra
y se continúa con el siguiente; nunca se propaga al pipeline.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

import httpx

from app.shared.config import get_provisioning_settings
from app.shared.integrations import (
    EmailDeliveryError,
    IEmailSender,
    WhatsAppDeliveryError,
    WhatsAppSender,
    get_email_sender,
)
from app.observability.prom import notifications_total

from .message_formatter import (
    AlertContext,
    build_email_bodies,
    build_subject,
    build_whatsapp_message,
)

logger = logging.getLogger(__name__)

CHANNEL_EMAIL = "email"
CHANNEL_WHATSAPP = "whatsapp"


@dataclass
class FanoutReport:
    """Resultado por destinatario; solo informativo."""

    delivered: list[tuple[str, str]] = field(default_factory=list)
    failed: list[tuple[str, str, str]] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.delivered) + len(self.failed)


class NotificationFanout:
    def __init__(
        self,
        email_sender: IEmailSender,
        whatsapp_sender: Optional[WhatsAppSender],
        email_recipients: Sequence[str] = (),
        whatsapp_recipients: Sequence[str] = (),
    ):
        self.email_sender = email_sender
        self.whatsapp_sender = whatsapp_sender
        self.email_recipients = list(email_recipients)
        self.whatsapp_recipients = list(whatsapp_recipients)

    @classmethod
    def from_settings(cls) -> "NotificationFanout":
        settings = get_provisioning_settings()
        return cls(
            email_sender=get_email_sender(),
            whatsapp_sender=WhatsAppSender.from_settings(settings),
            email_recipients=settings.email_recipients(),
            whatsapp_recipients=settings.whatsapp_recipients(),
        )

    async def notify(
        self,
        ctx: AlertContext,
        message: str,
        details: Mapping[str, Any],
    ) -> FanoutReport:
        report = FanoutReport()

        subject = build_subject(ctx)
        html_body, text_body = build_email_bodies(ctx, message, details)
        for recipient in self.email_recipients:
            try:
                await self.email_sender.send_email(recipient, subject, html_body, text_body)
            except (EmailDeliveryError, httpx.HTTPError, OSError) as e:
                logger.error("notification_failed channel=email to=%s order=%s error=%s", recipient, ctx.order_number, e)
                notifications_total.labels(CHANNEL_EMAIL, "failed").inc()
                report.failed.append((CHANNEL_EMAIL, recipient, str(e)))
            else:
                notifications_total.labels(CHANNEL_EMAIL, "sent").inc()
                report.delivered.append((CHANNEL_EMAIL, recipient))

        if self.whatsapp_recipients:
            if self.whatsapp_sender is None or not self.whatsapp_sender.is_configured:
                logger.warning("notification_skipped channel=whatsapp reason=not_configured order=%s", ctx.order_number)
            else:
                wa_message = build_whatsapp_message(ctx, details)
                for number in self.whatsapp_recipients:
                    try:
                        await self.whatsapp_sender.send(number, wa_message)
                    except (WhatsAppDeliveryError, httpx.HTTPError, OSError) as e:
                        logger.error(
                            "notification_failed channel=whatsapp to=%s order=%s error=%s",
                            number, ctx.order_number, e,
                        )
                        notifications_total.labels(CHANNEL_WHATSAPP, "failed").inc()
                        report.failed.append((CHANNEL_WHATSAPP, number, str(e)))
                    else:
                        notifications_total.labels(CHANNEL_WHATSAPP, "sent").inc()
                        report.delivered.append((CHANNEL_WHATSAPP, number))

        logger.info(
            "notification_fanout_done order=%s delivered=%d failed=%d",
            ctx.order_number, len(report.delivered), len(report.failed),
        )
        return report


__all__ = ["NotificationFanout", "FanoutReport", "CHANNEL_EMAIL", "CHANNEL_WHATSAPP"]
# Fin del archivo backend/app/modules/notifications/services/notification_fanout.py
