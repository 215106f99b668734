# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/models/catalog_models.py

Catálogo de productos (fuente mutable de los snapshots de OrderItem).

Cada producto corresponde a una disponibilidad de Partner Center:
catalogItemId = "{product_code}:{sku_id}:{availability_id}".

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
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.shared.database.base import Base, BigIntPK, utcnow


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name!r})>"


class Product(Base):
    """Producto vendible. Su título y precio pueden cambiar después de una venta."""

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)

    product_code: Mapped[str] = mapped_column(
        String(64), nullable=False, doc="ProductId de Partner Center."
    )
    sku_id: Mapped[str] = mapped_column(
        String(64), nullable=False, doc="SkuId de Partner Center."
    )
    availability_id: Mapped[str] = mapped_column(
        String(64), nullable=False, doc="Id de disponibilidad de Partner Center."
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    sku_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    publisher: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    term_duration: Mapped[Optional[str]] = mapped_column(
        String(16), nullable=True, doc="Plazo ISO-8601 (P1M, P1Y, P3Y)."
    )
    billing_plan: Mapped[Optional[str]] = mapped_column(
        String(32), nullable=True, doc="Ciclo de facturación (Monthly, Annual, OneTime)."
    )
    market: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    segment: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    list_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    category_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    category: Mapped[Optional[Category]] = relationship(lazy="raise")

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint(
            "product_code", "sku_id", "availability_id",
            name="uq_products_catalog_item",
        ),
    )

    @property
    def catalog_item_id(self) -> str:
        return f"{self.product_code}:{self.sku_id}:{self.availability_id}"

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, catalog_item_id={self.catalog_item_id!r})>"


__all__ = ["Category", "Product"]
# Fin del archivo backend/app/modules/orders/models/catalog_models.py
