# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/services/order_number_service.py

Folios de orden: ORD-YYYYMM###### (secuencia por periodo).

El incremento es un UPDATE ... RETURNING sobre order_number_sequences
dentro de la misma transacción que inserta la orden: la fila del periodo
queda bloqueada hasta el commit, así que dos materializaciones
concurrentes nunca leen el mismo valor. El primer folio del periodo se
inserta en un SAVEPOINT; si otro proceso lo insertó antes, se reintenta
el UPDATE.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.database.base import utcnow
from app.modules.orders.models import OrderNumberSequence

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD-"
SEQUENCE_WIDTH = 6


def format_order_number(period: str, value: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{period}{value:0{SEQUENCE_WIDTH}d}"


async def _increment(session: AsyncSession, period: str) -> Optional[int]:
    stmt = (
        update(OrderNumberSequence)
        .where(OrderNumberSequence.period == period)
        .values(last_value=OrderNumberSequence.last_value + 1)
        .returning(OrderNumberSequence.last_value)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def next_order_number(session: AsyncSession, now: Optional[datetime] = None) -> str:
    period = (now or utcnow()).strftime("%Y%m")

    value = await _increment(session, period)
    if value is None:
        try:
            async with session.begin_nested():
                session.add(OrderNumberSequence(period=period, last_value=1))
                await session.flush()
            value = 1
        except IntegrityError:
            logger.info("order_number_sequence_race period=%s", period)
            value = await _increment(session, period)
            if value is None:
                raise

    return format_order_number(period, value)


__all__ = ["next_order_number", "format_order_number", "ORDER_NUMBER_PREFIX"]
# Fin del archivo backend/app/modules/orders/services/order_number_service.py
