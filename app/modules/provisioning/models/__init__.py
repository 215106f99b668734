# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/models/__init__.py

Modelos ORM del módulo Provisioning.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

from .customer_account_models import CustomerAccount
from .subscription_models import SUBSCRIPTION_ACTIVE, SUBSCRIPTION_INACTIVE, Subscription

__all__ = ["CustomerAccount", "Subscription", "SUBSCRIPTION_ACTIVE", "SUBSCRIPTION_INACTIVE"]
