# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/models/cart_models.py

Carrito de compra. Los totales llegan ya calculados (precio, impuestos,
descuentos); este backend solo los consume.

Autor: Ixchel Beristain
Fecha: 2026-10-10
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.shared.database.base import Base, BigIntPK, utcnow
from app.modules.orders.enums import CartItemStatus, CartStatus

if TYPE_CHECKING:
    from .catalog_models import Product


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    # Sin ForeignKey a usuarios: la identidad vive en otro servicio
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True, index=True)

    customer_account_id: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        ForeignKey("customer_accounts.id", ondelete="SET NULL"),
        nullable=True,
        doc="Tenant de Partner Center destino del aprovisionamiento.",
    )

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CartStatus.ACTIVE.value, doc="active | converted | abandoned"
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="MXN")

    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

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

    items: Mapped[List["CartItem"]] = relationship(
        back_populates="cart",
        lazy="raise",
        order_by="CartItem.id",
    )

    __table_args__ = (
        Index("ix_carts_status_updated_at", "status", "updated_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Cart(id={self.id}, status={self.status}, total={self.total_amount})>"


class CartItem(Base):
    __tablename__ = "cart_items"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    cart_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("products.id"), nullable=False
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    list_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    line_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CartItemStatus.ACTIVE.value)

    item_metadata: Mapped[Optional[dict]] = mapped_column(
        "metadata", JSONB, nullable=True, doc="Precios/opciones capturados al agregar al carrito."
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )

    cart: Mapped[Cart] = relationship(back_populates="items", lazy="raise")
    product: Mapped["Product"] = relationship(lazy="raise")

    def __repr__(self) -> str:
        return f"<CartItem(id={self.id}, cart_id={self.cart_id}, product_id={self.product_id}, qty={self.quantity})>"


__all__ = ["Cart", "CartItem"]
# Fin del archivo backend/app/modules/orders/models/cart_models.py
