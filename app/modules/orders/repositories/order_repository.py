# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/repositories/order_repository.py

Repositorio de órdenes.

Incluye el lease de aprovisionamiento: un UPDATE condicional sobre
provisioning_locked_until que solo gana un proceso a la vez.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.shared.database.base import utcnow
from app.shared.database.repository import BaseRepository
from app.modules.orders.enums import OrderPaymentStatus, OrderStatus
from app.modules.orders.models import Order


class OrderRepository(BaseRepository[Order]):
    def __init__(self) -> None:
        super().__init__(Order)

    async def get_by_payment_response_id(
        self, session: AsyncSession, payment_response_id: int
    ) -> Optional[Order]:
        stmt = select(Order).where(Order.payment_response_id == payment_response_id)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def get_with_items(self, session: AsyncSession, order_id: int) -> Optional[Order]:
        stmt = (
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def list_unpaid_for_cart(self, session: AsyncSession, cart_id: int) -> Sequence[Order]:
        stmt = select(Order).where(
            Order.cart_id == cart_id,
            Order.payment_status.in_(
                [OrderPaymentStatus.PENDING.value, OrderPaymentStatus.FAILED.value]
            ),
            Order.status != OrderStatus.CANCELLED.value,
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_retry_candidates(
        self,
        session: AsyncSession,
        max_attempts: int,
        limit: int,
        now: Optional[datetime] = None,
    ) -> Sequence[int]:
        """Ids de órdenes pagadas en processing, bajo el límite automático y sin lease vigente."""
        now = now or utcnow()
        stmt = (
            select(Order.id)
            .where(
                Order.status == OrderStatus.PROCESSING.value,
                Order.payment_status == OrderPaymentStatus.PAID.value,
                Order.provisioning_attempts < max_attempts,
                or_(Order.provisioning_locked_until.is_(None), Order.provisioning_locked_until < now),
            )
            .order_by(Order.last_provisioning_attempt_at.asc().nulls_first(), Order.id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_exhausted_unnotified(
        self, session: AsyncSession, max_attempts: int
    ) -> Sequence[Order]:
        stmt = select(Order).where(
            Order.status == OrderStatus.PROCESSING.value,
            Order.payment_status == OrderPaymentStatus.PAID.value,
            Order.provisioning_attempts >= max_attempts,
            Order.retries_exhausted_notified_at.is_(None),
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def try_acquire_lease(
        self,
        session: AsyncSession,
        order_id: int,
        lease_seconds: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """UPDATE ... WHERE lease libre. True si este proceso obtuvo el lease."""
        now = now or utcnow()
        stmt = (
            update(Order)
            .where(
                Order.id == order_id,
                or_(Order.provisioning_locked_until.is_(None), Order.provisioning_locked_until < now),
            )
            .values(provisioning_locked_until=now + timedelta(seconds=lease_seconds))
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return (result.rowcount or 0) == 1

    async def release_lease(self, session: AsyncSession, order_id: int) -> None:
        await session.execute(
            update(Order)
            .where(Order.id == order_id)
            .values(provisioning_locked_until=None)
            .execution_options(synchronize_session=False)
        )


__all__ = ["OrderRepository"]
# Fin del archivo backend/app/modules/orders/repositories/order_repository.py
