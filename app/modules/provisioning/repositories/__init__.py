# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/repositories/__init__.py
"""

from .subscription_repository import CustomerAccountRepository, SubscriptionRepository

__all__ = ["SubscriptionRepository", "CustomerAccountRepository"]
