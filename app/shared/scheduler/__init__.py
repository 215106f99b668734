# -*- coding: utf-8 -*-
"""
backend/app/shared/scheduler/__init__.py

Sistema de jobs programados usando APScheduler.

Autor: Ixchel Beristain
Fecha: 2026-10-08
"""

from .scheduler_service import SchedulerService, get_scheduler

__all__ = [
    "SchedulerService",
    "get_scheduler",
]
