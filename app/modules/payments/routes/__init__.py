# -*- coding: utf-8 -*-
"""
backend/app/modules/payments/routes/__init__.py
"""

from .mitec_routes import get_callback_service, get_checkout_service, router

__all__ = ["router", "get_checkout_service", "get_callback_service"]
