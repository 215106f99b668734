# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payment_session_models.py

Sesión de pago: correlación referencia MITEC -> carrito/usuario.

- Se crea justo antes de enviar el formulario al navegador.
- Nunca se modifica; el conciliador la lee una vez.
- Vida corta (PAYMENT_SESSION_TTL_MINUTES); el borrado de expiradas es
  perezoso (job de limpieza), las lecturas filtran por expires_at.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, utcnow


class PaymentSession(Base):
    __tablename__ = "payment_sessions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    transaction_reference: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="Referencia MKT... enviada en tx_reference.",
    )

    form_payload: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Documento <pgs> exacto que se publicó a la pasarela.",
    )
    html_form: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Formulario auto-submit servido al navegador.",
    )
    gateway_url: Mapped[str] = mapped_column(Text, nullable=False)

    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    cart_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("carts.id", ondelete="SET NULL"), nullable=True
    )
    customer_account_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, doc="Total del carrito al iniciar el pago."
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("transaction_reference", name="uq_payment_sessions_transaction_reference"),
    )

    def __repr__(self) -> str:
        return f"<PaymentSession(id={self.id}, reference={self.transaction_reference}, cart_id={self.cart_id})>"


__all__ = ["PaymentSession"]
# Fin del archivo backend/app/modules/payments/models/payment_session_models.py
