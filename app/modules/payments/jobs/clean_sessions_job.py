# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/jobs/clean_sessions_job.py

Job programado que borra las PaymentSession expiradas.

Las lecturas nunca dependen de este job: el filtro expires_at > now
ya excluye las sesiones vencidas.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.shared.config import get_payments_settings
from app.shared.database.database import get_async_session_context
from app.shared.scheduler import get_scheduler
from app.modules.payments.repositories import PaymentSessionRepository

logger = logging.getLogger(__name__)

CLEAN_SESSIONS_JOB_ID = "payments_clean_expired_sessions"


async def clean_expired_sessions(session: Optional[AsyncSession] = None) -> int:
    """
    Returns:
        Número de sesiones borradas
    """
    repo = PaymentSessionRepository()

    async def _do_clean(sess: AsyncSession) -> int:
        deleted = await repo.delete_expired(sess)
        await sess.commit()
        return deleted

    if session is not None:
        deleted = await _do_clean(session)
    else:
        async with get_async_session_context() as sess:
            deleted = await _do_clean(sess)

    if deleted:
        logger.info("payment_sessions_cleaned deleted=%d", deleted)
    else:
        logger.debug("payment_sessions_cleaned deleted=0")
    return deleted


def register_clean_sessions_job(interval_minutes: Optional[int] = None) -> str:
    if interval_minutes is None:
        interval_minutes = get_payments_settings().payment_session_cleanup_minutes

    job_id = get_scheduler().add_interval_job(
        func=clean_expired_sessions,
        job_id=CLEAN_SESSIONS_JOB_ID,
        minutes=interval_minutes,
    )
    logger.info("Registered payment session cleanup job: id=%s interval=%d min", job_id, interval_minutes)
    return job_id


__all__ = ["clean_expired_sessions", "register_clean_sessions_job", "CLEAN_SESSIONS_JOB_ID"]
