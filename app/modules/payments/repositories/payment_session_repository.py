# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/payment_session_repository.py

Repositorio de sesiones de pago.

Las lecturas siempre filtran expires_at > ahora; el borrado de sesiones
expiradas es perezoso (job de limpieza) y ninguna lectura depende de él.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.shared.database.repository import BaseRepository
from app.modules.payments.models import PaymentSession


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PaymentSessionRepository(BaseRepository[PaymentSession]):
    def __init__(self) -> None:
        super().__init__(PaymentSession)

    async def get_live_by_reference(
        self,
        session: AsyncSession,
        reference: str,
        now: Optional[datetime] = None,
    ) -> Optional[PaymentSession]:
        stmt = select(PaymentSession).where(
            PaymentSession.transaction_reference == reference,
            PaymentSession.expires_at > (now or utcnow()),
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def find_live_by_prefix(
        self,
        session: AsyncSession,
        prefix: str,
        now: Optional[datetime] = None,
    ) -> Optional[PaymentSession]:
        """Sesión viva más reciente cuya referencia inicia con `prefix`."""
        if not prefix:
            return None
        stmt = (
            select(PaymentSession)
            .where(
                PaymentSession.transaction_reference.like(f"{_escape_like(prefix)}%", escape="\\"),
                PaymentSession.expires_at > (now or utcnow()),
            )
            .order_by(PaymentSession.created_at.desc(), PaymentSession.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def delete_expired(self, session: AsyncSession, now: Optional[datetime] = None) -> int:
        stmt = delete(PaymentSession).where(PaymentSession.expires_at <= (now or utcnow()))
        result = await session.execute(stmt)
        return int(result.rowcount or 0)


__all__ = ["PaymentSessionRepository"]
# Fin del archivo backend/app/modules/payments/repositories/payment_session_repository.py
