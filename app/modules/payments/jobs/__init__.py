# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/jobs/__init__.py

Jobs programados del módulo Payments.
"""

from .clean_sessions_job import (
    CLEAN_SESSIONS_JOB_ID,
    clean_expired_sessions,
    register_clean_sessions_job,
)

__all__ = [
    "clean_expired_sessions",
    "register_clean_sessions_job",
    "CLEAN_SESSIONS_JOB_ID",
]
