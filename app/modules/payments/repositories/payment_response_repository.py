# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/repositories/payment_response_repository.py

Repositorio de respuestas de la pasarela.

insert_idempotent() inserta dentro de un SAVEPOINT: si otro proceso ganó
la carrera, el UNIQUE(transaction_reference) dispara IntegrityError, se
revierte solo el savepoint y se devuelve la fila existente.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.repository import BaseRepository
from app.modules.payments.models import PaymentResponse

logger = logging.getLogger(__name__)


class PaymentResponseRepository(BaseRepository[PaymentResponse]):
    def __init__(self) -> None:
        super().__init__(PaymentResponse)

    async def get_by_reference(self, session: AsyncSession, reference: str) -> Optional[PaymentResponse]:
        stmt = select(PaymentResponse).where(PaymentResponse.transaction_reference == reference)
        result = await session.execute(stmt)
        return result.scalars().first()

    async def insert_idempotent(
        self,
        session: AsyncSession,
        **values: Any,
    ) -> Tuple[PaymentResponse, bool]:
        """
        Returns:
            (respuesta, creada) - creada=False si ya existía
        """
        reference = values["transaction_reference"]
        existing = await self.get_by_reference(session, reference)
        if existing is not None:
            return existing, False

        obj = PaymentResponse(**values)
        try:
            async with session.begin_nested():
                session.add(obj)
                await session.flush()
        except IntegrityError:
            logger.info("payment_response_insert_race reference=%s", reference)
            existing = await self.get_by_reference(session, reference)
            if existing is None:
                raise
            return existing, False

        return obj, True

    async def link_order(self, session: AsyncSession, payment_response_id: int, order_id: int) -> None:
        """Único cambio permitido tras la creación: el back-link a la orden."""
        await session.execute(
            update(PaymentResponse)
            .where(PaymentResponse.id == payment_response_id)
            .values(order_id=order_id)
        )


__all__ = ["PaymentResponseRepository"]
# Fin del archivo backend/app/modules/payments/repositories/payment_response_repository.py
