# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/repositories/subscription_repository.py

Lectura de suscripciones creadas por el aprovisionamiento.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.provisioning.models import CustomerAccount, Subscription


class SubscriptionRepository(BaseRepository[Subscription]):
    def __init__(self) -> None:
        super().__init__(Subscription)

    async def list_by_order(self, session: AsyncSession, order_id: int) -> Sequence[Subscription]:
        stmt = select(Subscription).where(Subscription.order_id == order_id).order_by(Subscription.id)
        result = await session.execute(stmt)
        return result.scalars().all()


class CustomerAccountRepository(BaseRepository[CustomerAccount]):
    def __init__(self) -> None:
        super().__init__(CustomerAccount)

    async def get_active_for_user(self, session: AsyncSession, user_id: int) -> Optional[CustomerAccount]:
        stmt = (
            select(CustomerAccount)
            .where(CustomerAccount.user_id == user_id, CustomerAccount.is_active.is_(True))
            .order_by(CustomerAccount.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()


__all__ = ["SubscriptionRepository", "CustomerAccountRepository"]
# Fin del archivo backend/app/modules/provisioning/repositories/subscription_repository.py
