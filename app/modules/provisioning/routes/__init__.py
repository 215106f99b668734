# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/routes/__init__.py
"""

from .provisioning_routes import get_retry_service, router

__all__ = ["router", "get_retry_service"]
