# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/services/__init__.py

Servicios de aprovisionamiento en Partner Center.
"""

from .line_items import budget_amount, build_line_items, compute_budget, is_prepaid_credit, match_line_items
from .provisioning_orchestrator import ProvisioningOrchestrator, ProvisioningOutcome, alert_context
from .provisioning_retry_service import BatchReport, ProvisioningRetryService, RetryResult, RetryStatus

__all__ = [
    "ProvisioningOrchestrator",
    "ProvisioningOutcome",
    "alert_context",
    "ProvisioningRetryService",
    "RetryResult",
    "RetryStatus",
    "BatchReport",
    "build_line_items",
    "compute_budget",
    "budget_amount",
    "is_prepaid_credit",
    "match_line_items",
]
