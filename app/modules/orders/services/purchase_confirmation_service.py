# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/services/purchase_confirmation_service.py

Correo de confirmación de compra (comprador + copia a soporte).
Se envía después del commit de la orden; es best-effort: un fallo se
registra y no afecta a la orden ni al redirect del cliente.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import html
import logging
from typing import Optional, Sequence

import httpx

from app.shared.integrations import EmailDeliveryError, IEmailSender
from app.modules.orders.models import Order, OrderItem

logger = logging.getLogger(__name__)


def render_confirmation(order: Order, items: Sequence[OrderItem]) -> tuple[str, str, str]:
    """(asunto, html, texto)."""
    subject = f"Confirmación de compra - Orden {order.order_number}"
    rows = "".join(
        f"<tr><td>{html.escape(item.title)}</td><td>{item.quantity}</td>"
        f"<td>${item.unit_price:,.2f}</td><td>${item.line_total:,.2f}</td></tr>"
        for item in items
    )
    html_body = (
        "<html><body>"
        f"<h2>¡Gracias por tu compra!</h2>"
        f"<p>Tu orden <strong>{html.escape(order.order_number)}</strong> fue pagada "
        "y estamos activando tus licencias.</p>"
        "<table><tr><th>Producto</th><th>Cantidad</th><th>Precio</th><th>Importe</th></tr>"
        f"{rows}</table>"
        f"<p>Subtotal: ${order.subtotal:,.2f}<br>"
        f"Impuestos: ${order.tax_amount:,.2f}<br>"
        f"Descuento: ${order.discount_amount:,.2f}<br>"
        f"<strong>Total: ${order.total_amount:,.2f} {html.escape(order.currency)}</strong></p>"
        "</body></html>"
    )
    text_lines = [f"Orden {order.order_number} pagada.", ""]
    text_lines += [f"- {item.title} x{item.quantity}: ${item.line_total:,.2f}" for item in items]
    text_lines += ["", f"Total: ${order.total_amount:,.2f} {order.currency}"]
    return subject, html_body, "\n".join(text_lines)


class PurchaseConfirmationService:
    def __init__(self, email_sender: IEmailSender, operator_email: Optional[str] = None):
        self.email_sender = email_sender
        self.operator_email = operator_email

    async def send(self, order: Order, items: Sequence[OrderItem]) -> int:
        """Devuelve cuántos correos se entregaron al proveedor."""
        recipients = [r for r in (order.customer_email, self.operator_email) if r]
        if not recipients:
            logger.info("purchase_confirmation_skipped order=%s reason=no_recipients", order.order_number)
            return 0

        subject, html_body, text_body = render_confirmation(order, items)
        sent = 0
        for recipient in dict.fromkeys(recipients):
            try:
                await self.email_sender.send_email(recipient, subject, html_body, text_body)
                sent += 1
            except (EmailDeliveryError, httpx.HTTPError, OSError) as e:
                logger.warning(
                    "purchase_confirmation_failed order=%s to=%s error=%s", order.order_number, recipient, e
                )
        logger.info("purchase_confirmation_sent order=%s sent=%d", order.order_number, sent)
        return sent


__all__ = ["PurchaseConfirmationService", "render_confirmation"]
# Fin del archivo backend/app/modules/orders/services/purchase_confirmation_service.py
