# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/models/subscription_models.py

Suscripción creada por un checkout exitoso en Partner Center.
Una fila por línea devuelta; status 1 = activa, 0 = inactiva
(cancelación/renovación viven en otro flujo).

Autor: Ixchel Beristain
Fecha: 2026-10-11
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
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.shared.database.base import Base, BigIntPK, utcnow

SUBSCRIPTION_ACTIVE = 1
SUBSCRIPTION_INACTIVE = 0


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    order_item_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("order_items.id", ondelete="SET NULL"), nullable=True
    )
    customer_account_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("customer_accounts.id", ondelete="SET NULL"), nullable=True
    )
    product_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    subscription_identifier: Mapped[str] = mapped_column(
        String(32), nullable=False, doc="Folio de la orden que la originó."
    )
    subscription_id: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, doc="SubscriptionId de Partner Center."
    )
    offer_id: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sku_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    microsoft_cart_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    term_duration: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    billing_cycle: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    transaction_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    friendly_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    pricing: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    status: Mapped[int] = mapped_column(Integer, nullable=False, default=SUBSCRIPTION_ACTIVE)
    auto_renew_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="Marketplace")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    __table_args__ = (
        Index("ix_subscriptions_order_status", "order_id", "status"),
        Index("ix_subscriptions_subscription_id", "subscription_id"),
    )

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, order_id={self.order_id}, subscription_id={self.subscription_id})>"


__all__ = ["Subscription", "SUBSCRIPTION_ACTIVE", "SUBSCRIPTION_INACTIVE"]
# Fin del archivo backend/app/modules/provisioning/models/subscription_models.py
