# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/jobs/__init__.py

Jobs programados del módulo Provisioning.
"""

from .retry_provisioning_job import (
    RETRY_PROVISIONING_JOB_ID,
    register_retry_provisioning_job,
    retry_pending_provisioning,
)

__all__ = [
    "retry_pending_provisioning",
    "register_retry_provisioning_job",
    "RETRY_PROVISIONING_JOB_ID",
]
