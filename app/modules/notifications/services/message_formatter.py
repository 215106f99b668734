# -*- coding: utf-8 -*-
"""
backend/app/modules/notifications/services/message_formatter.py

Formato de las alertas operativas de pedidos no procesados.

El detalle técnico del proveedor (código, descripción, HTTP status) solo
aparece aquí, dirigido al operador; el cliente final nunca lo ve.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence

from app.shared.database.base import utcnow


@dataclass(frozen=True)
class AlertContext:
    """Datos de la orden necesarios para una alerta (sin objetos ORM)."""

    order_number: str
    total_amount: Decimal
    currency: str = "MXN"
    customer_email: Optional[str] = None
    microsoft_id: Optional[str] = None
    domain: Optional[str] = None
    items: Sequence[tuple[str, int]] = field(default_factory=tuple)


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def build_subject(ctx: AlertContext) -> str:
    return f"🚨 No se procesó pedido en Readymarket - Orden {ctx.order_number}"


def build_whatsapp_message(
    ctx: AlertContext,
    details: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> str:
    lines = [
        "🚨 *NO SE PROCESO PEDIDO EN READYMARKET* 🚨",
        "",
        f"📋 *ORDEN:* {ctx.order_number}",
        f"💰 *TOTAL:* {_money(ctx.total_amount)} {ctx.currency}",
    ]
    if ctx.customer_email:
        lines.append(f"👤 *CLIENTE:* {ctx.customer_email}")
    if ctx.microsoft_id:
        lines.append(f"🔑 *Microsoft ID:* {ctx.microsoft_id}")
    if ctx.domain:
        lines.append(f"🌐 *DOMINIO:* {ctx.domain}")

    lines += ["", "❌ *ERROR DE MICROSOFT:*"]
    if details.get("error_code"):
        lines.append(f"📄 *Código:* {details['error_code']}")
    if details.get("description"):
        lines.append(f"📝 *Descripción:* {details['description']}")
    if details.get("http_status"):
        lines.append(f"🌐 *HTTP Status:* {details['http_status']}")
    if details.get("step"):
        lines.append(f"🔁 *Paso:* {details['step']}")

    lines += ["", "🛒 *PRODUCTOS:*"]
    if ctx.items:
        lines += [f"{i}. {title} (x{qty})" for i, (title, qty) in enumerate(ctx.items, start=1)]
    else:
        lines.append("Sin productos disponibles")

    lines += [
        "",
        f"⏰ *Fecha:* {(now or utcnow()).strftime('%d/%m/%Y %H:%M:%S')}",
        "",
        "🔧 *Acción requerida:* Revisar Microsoft Partner Center",
    ]
    return "\n".join(lines)


_DETAIL_LABELS = (
    ("step", "Paso"),
    ("http_status", "Código HTTP"),
    ("error_code", "Código de error"),
    ("description", "Descripción"),
    ("correlation_id", "Correlation ID"),
    ("request_id", "Request ID"),
    ("endpoint", "Endpoint"),
    ("raw_response", "Respuesta completa"),
)


def build_email_bodies(
    ctx: AlertContext,
    message: str,
    details: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> tuple[str, str]:
    """(html, texto) del correo al operador."""
    stamp = (now or utcnow()).strftime("%Y-%m-%d %H:%M:%S")
    rows = [(label, details[key]) for key, label in _DETAIL_LABELS if details.get(key) not in (None, "")]
    items = list(ctx.items)

    text_lines = [
        f"Orden: {ctx.order_number}",
        f"Total: {_money(ctx.total_amount)} {ctx.currency}",
        f"Cliente: {ctx.customer_email or 'N/A'}",
        f"Microsoft ID: {ctx.microsoft_id or 'N/A'}",
        f"Dominio: {ctx.domain or 'N/A'}",
        "",
        f"Error: {message}",
    ]
    text_lines += [f"{label}: {value}" for label, value in rows]
    text_lines += ["", "Productos:"]
    text_lines += [f"- {title} (x{qty})" for title, qty in items] or ["- Sin productos disponibles"]
    text_lines += ["", f"Fecha: {stamp}"]

    esc = html.escape
    detail_html = "".join(
        f"<tr><td><strong>{esc(label)}</strong></td><td><pre>{esc(str(value))}</pre></td></tr>"
        for label, value in rows
    )
    items_html = "".join(f"<li>{esc(title)} (x{qty})</li>" for title, qty in items) or "<li>Sin productos disponibles</li>"
    html_body = (
        "<html><body>"
        f"<h2>No se procesó el pedido {esc(ctx.order_number)}</h2>"
        f"<p><strong>Total:</strong> {esc(_money(ctx.total_amount))} {esc(ctx.currency)}<br>"
        f"<strong>Cliente:</strong> {esc(ctx.customer_email or 'N/A')}<br>"
        f"<strong>Microsoft ID:</strong> {esc(ctx.microsoft_id or 'N/A')}<br>"
        f"<strong>Dominio:</strong> {esc(ctx.domain or 'N/A')}</p>"
        f"<p><strong>Error:</strong> {esc(message)}</p>"
        f"<table>{detail_html}</table>"
        f"<h3>Productos</h3><ul>{items_html}</ul>"
        f"<p>Fecha: {esc(stamp)}</p>"
        "<p>Acción requerida: revisar Microsoft Partner Center.</p>"
        "</body></html>"
    )
    return html_body, "\n".join(text_lines)


__all__ = ["AlertContext", "build_subject", "build_whatsapp_message", "build_email_bodies"]
# Fin del archivo backend/app/modules/notifications/services/message_formatter.py
