# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/models/payment_response_models.py

Registro durable de cada callback de MITEC.

- UNIQUE(transaction_reference): clave de idempotencia; un callback
  repetido devuelve la misma fila.
- Inmutable una vez creado, salvo el back-link order_id que escribe el
  materializador de órdenes.
- order_id sin ForeignKey para evitar dependencia circular con orders
  (orders.payment_response_id sí es FK y UNIQUE).

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, utcnow
from app.modules.payments.enums import PaymentResponseStatus, ResolutionPath


class PaymentResponse(Base):
    __tablename__ = "payment_responses"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    transaction_reference: Mapped[str] = mapped_column(String(64), nullable=False)

    payment_session_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("payment_sessions.id", ondelete="SET NULL"),
        nullable=True,
        doc="Sesión resuelta; NULL si se usó el respaldo o no hubo resolución.",
    )
    cart_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True, index=True)
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    customer_account_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    resolution_path: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ResolutionPath.UNRESOLVED.value,
        doc="exact_session | prefix_session | cart_fallback | unresolved",
    )

    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentResponseStatus.PENDING.value
    )
    amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")

    # ----- Centro de pagos -----
    payment_folio: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    payment_response: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    auth_code: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    cd_response: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    cd_error: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    nb_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    voucher: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mitec_datetime: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)

    # ----- 3-D Secure -----
    r3ds_response_code: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    r3ds_response_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    r3ds_eci: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    r3ds_trans_status: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)

    card_last_four: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    card_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    raw_xml: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    parsed_fields: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)
    is_synthetic: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    order_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("transaction_reference", name="uq_payment_responses_transaction_reference"),
        Index("ix_payment_responses_status_created_at", "payment_status", "created_at"),
    )

    @property
    def status(self) -> PaymentResponseStatus:
        return PaymentResponseStatus(self.payment_status)

    def __repr__(self) -> str:
        return (
            f"<PaymentResponse(id={self.id}, reference={self.transaction_reference}, "
            f"status={self.payment_status}, path={self.resolution_path})>"
        )


__all__ = ["PaymentResponse"]
# Fin del archivo backend/app/modules/payments/models/payment_response_models.py
