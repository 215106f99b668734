# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/repositories/cart_repository.py

Repositorio de carritos.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.shared.database.repository import BaseRepository
from app.modules.orders.enums import CartItemStatus, CartStatus
from app.modules.orders.models import Cart, CartItem, Product


class CartRepository(BaseRepository[Cart]):
    def __init__(self) -> None:
        super().__init__(Cart)

    async def get_with_items(self, session: AsyncSession, cart_id: int) -> Optional[Cart]:
        """Carrito con sus líneas, producto y categoría (las líneas removidas se filtran al usarlas)."""
        stmt = (
            select(Cart)
            .where(Cart.id == cart_id)
            .options(
                selectinload(Cart.items)
                .selectinload(CartItem.product)
                .selectinload(Product.category)
            )
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def find_recent_active(
        self,
        session: AsyncSession,
        since: datetime,
        user_id: Optional[int] = None,
    ) -> Optional[Cart]:
        """Carrito activo actualizado más recientemente desde `since` (respaldo heurístico)."""
        stmt = select(Cart).where(
            Cart.status == CartStatus.ACTIVE.value,
            Cart.updated_at >= since,
        )
        if user_id is not None:
            stmt = stmt.where(Cart.user_id == user_id)
        stmt = stmt.order_by(Cart.updated_at.desc(), Cart.id.desc()).limit(1)
        result = await session.execute(stmt)
        return result.scalars().first()


def active_items(cart: Cart) -> list[CartItem]:
    return [item for item in cart.items if item.status == CartItemStatus.ACTIVE]


__all__ = ["CartRepository", "active_items"]
# Fin del archivo backend/app/modules/orders/repositories/cart_repository.py
