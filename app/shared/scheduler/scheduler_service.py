# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/scheduler_service.py

Servicio de programación de tareas periódicas usando APScheduler.

Jobs registrados por la aplicación:
- payment_sessions_cleanup: borra sesiones de pago expiradas
- provisioning_retry: reintenta aprovisionar órdenes pagadas en "processing"

Autor: Ixchel Beristain
Fecha: 2026-10-08
"""

import logging
from typing import Optional, Callable
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.executors.asyncio import AsyncIOExecutor

logger = logging.getLogger(__name__)


class SchedulerService:
    """
    Envoltorio delgado sobre AsyncIOScheduler.

    Cada job corre como máximo una instancia a la vez; las ejecuciones
    perdidas se combinan (coalesce). La exclusión entre procesos la da
    el candado en base de datos de cada job, no el scheduler.
    """

    def __init__(self):
        self._scheduler = AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 30,
            },
            timezone="UTC",
        )
        self._started = False

    def start(self):
        if not self._started:
            self._scheduler.start()
            self._started = True
            logger.info("scheduler_started jobs=%d", len(self._scheduler.get_jobs()))

    def shutdown(self, wait: bool = True):
        """
        Detiene el scheduler.

        Args:
            wait: Si True, espera a que terminen los jobs en ejecución
        """
        if self._started:
            self._scheduler.shutdown(wait=wait)
            self._started = False
            logger.info("scheduler_stopped")

    def add_interval_job(
        self,
        func: Callable,
        job_id: str,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        **kwargs
    ) -> str:
        """
        Agrega (o reemplaza) un job que se ejecuta a intervalos regulares.

        Args:
            func: Corrutina a ejecutar
            job_id: ID único del job
            hours/minutes/seconds: Intervalo
            **kwargs: Argumentos para func

        Returns:
            ID del job agregado
        """
        self._scheduler.add_job(
            func=func,
            trigger=IntervalTrigger(hours=hours, minutes=minutes, seconds=seconds),
            id=job_id,
            name=job_id,
            replace_existing=True,
            kwargs=kwargs,
        )
        logger.info(
            "scheduler_job_added job_id=%s every=%dh%dm%ds",
            job_id, hours, minutes, seconds,
        )
        return job_id

    def remove_job(self, job_id: str) -> bool:
        try:
            self._scheduler.remove_job(job_id)
        except JobLookupError:
            logger.warning("scheduler_job_missing job_id=%s", job_id)
            return False
        logger.info("scheduler_job_removed job_id=%s", job_id)
        return True

    def get_jobs(self) -> list:
        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time,
                "trigger": str(job.trigger),
            }
            for job in self._scheduler.get_jobs()
        ]

    @property
    def is_running(self) -> bool:
        return self._started and self._scheduler.running


# Singleton global del scheduler
_scheduler_instance: Optional[SchedulerService] = None


def get_scheduler() -> SchedulerService:
    """Obtiene la instancia global del scheduler (singleton)."""
    global _scheduler_instance
    if _scheduler_instance is None:
        _scheduler_instance = SchedulerService()
    return _scheduler_instance


__all__ = ["SchedulerService", "get_scheduler"]
# Fin del archivo backend/app/shared/scheduler/scheduler_service.py
