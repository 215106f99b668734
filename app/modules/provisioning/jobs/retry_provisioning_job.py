# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/jobs/retry_provisioning_job.py

Job programado que reintenta el aprovisionamiento de órdenes pagadas
que siguen en processing, por debajo del límite de intentos automáticos.

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from typing import Optional

from app.shared.config import get_provisioning_settings
from app.shared.scheduler import get_scheduler
from app.modules.provisioning.services import BatchReport, ProvisioningRetryService

logger = logging.getLogger(__name__)

RETRY_PROVISIONING_JOB_ID = "provisioning_retry_orders"


async def retry_pending_provisioning(
    service: Optional[ProvisioningRetryService] = None,
) -> BatchReport:
    """Una corrida del job; los errores por orden quedan en el reporte."""
    service = service or ProvisioningRetryService()
    report = await service.retry_batch()
    logger.debug("provisioning_retry_job_run results=%d", len(report.results))
    return report


def register_retry_provisioning_job(interval_minutes: Optional[int] = None) -> str:
    """Registra el job en el scheduler global."""
    if interval_minutes is None:
        interval_minutes = get_provisioning_settings().provisioning_retry_interval_minutes

    job_id = get_scheduler().add_interval_job(
        func=retry_pending_provisioning,
        job_id=RETRY_PROVISIONING_JOB_ID,
        minutes=interval_minutes,
    )
    logger.info("Registered provisioning retry job: id=%s interval=%d min", job_id, interval_minutes)
    return job_id


__all__ = [
    "retry_pending_provisioning",
    "register_retry_provisioning_job",
    "RETRY_PROVISIONING_JOB_ID",
]
