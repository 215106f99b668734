# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/models/order_models.py

Modelos ORM de órdenes: Order, OrderItem y la secuencia de folios.

Una orden se crea exactamente una vez por PaymentResponse aprobado
(UNIQUE payment_response_id). Cada OrderItem guarda un snapshot por
valor del catálogo al momento de la compra; cambios posteriores del
producto no alteran el historial.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.shared.database.base import Base, BigIntPK, utcnow
from app.modules.orders.enums import (
    ItemFulfillmentStatus,
    OrderFulfillmentStatus,
    OrderPaymentStatus,
    OrderStatus,
)


class Order(Base):
    """
    Orden materializada a partir de un carrito y un pago aprobado.

    status (processing/completed/cancelled) y payment_status
    (pending/paid/failed/refunded) evolucionan por separado.
    Un fallo de aprovisionamiento deja la orden en processing.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    order_number: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        doc="Folio público ORD-YYYYMM######.",
    )

    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True, index=True)

    cart_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("carts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Carrito de origen (referencia, no propiedad).",
    )

    customer_account_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("customer_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )

    payment_response_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("payment_responses.id", ondelete="RESTRICT"),
        nullable=True,
        doc="Pago que originó la orden. Único: una orden por pago.",
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PROCESSING.value
    )
    payment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderPaymentStatus.PENDING.value
    )
    fulfillment_status: Mapped[str] = mapped_column(
        String(24), nullable=False, default=OrderFulfillmentStatus.PENDING.value
    )

    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    payment_method: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    cancellation_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Aprovisionamiento (reintentos acotados, sin estado terminal "failed")
    provisioning_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_provisioning_error: Mapped[Optional[dict]] = mapped_column(
        JSONB, nullable=True, doc="Detalle estructurado del último fallo."
    )
    last_provisioning_attempt_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    provisioning_locked_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, doc="Lease contra intentos concurrentes."
    )
    retries_exhausted_notified_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    items: Mapped[List["OrderItem"]] = relationship(
        back_populates="order",
        lazy="raise",
        order_by="OrderItem.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("payment_response_id", name="uq_orders_payment_response_id"),
        Index("ix_orders_status_payment_status", "status", "payment_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, number={self.order_number}, status={self.status}, "
            f"payment_status={self.payment_status}, total={self.total_amount})>"
        )


class OrderItem(Base):
    """Línea de orden con snapshot inmutable del producto comprado."""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )

    product_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        doc="Referencia informativa; los datos válidos son los del snapshot.",
    )
    cart_item_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    # ----- Snapshot de catálogo -----
    product_code: Mapped[str] = mapped_column(String(64), nullable=False)
    sku_id: Mapped[str] = mapped_column(String(64), nullable=False)
    availability_id: Mapped[str] = mapped_column(String(64), nullable=False)
    catalog_item_id: Mapped[str] = mapped_column(String(200), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    sku_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    publisher: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    term_duration: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    billing_plan: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    category_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    category_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)

    # ----- Snapshot de precios -----
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    list_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # ----- Fulfillment por línea -----
    fulfillment_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ItemFulfillmentStatus.PENDING.value
    )
    fulfillment_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fulfilled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    order: Mapped[Order] = relationship(back_populates="items", lazy="raise")

    def __repr__(self) -> str:
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, sku={self.catalog_item_id}, qty={self.quantity})>"


class OrderNumberSequence(Base):
    """Contador de folios por periodo (YYYYMM). Se incrementa dentro de la transacción de la orden."""

    __tablename__ = "order_number_sequences"

    period: Mapped[str] = mapped_column(String(6), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


__all__ = ["Order", "OrderItem", "OrderNumberSequence"]
# Fin del archivo backend/app/modules/orders/models/order_models.py
