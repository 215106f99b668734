# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/client/__init__.py

Clientes de Partner Center (real y simulado) y caché del token.
"""

from __future__ import annotations

from app.shared.config import get_provisioning_settings

from .fake_partner_center_client import FakePartnerCenterClient
from .partner_center_client import IPartnerCenterClient, PartnerCenterClient
from .token_cache import TokenCache


def get_partner_center_client() -> IPartnerCenterClient:
    """Cliente según PROVISIONING_FAKE_MODE."""
    settings = get_provisioning_settings()
    if settings.provisioning_fake_mode:
        return FakePartnerCenterClient()
    return PartnerCenterClient.from_settings(settings)


__all__ = [
    "IPartnerCenterClient",
    "PartnerCenterClient",
    "FakePartnerCenterClient",
    "TokenCache",
    "get_partner_center_client",
]
