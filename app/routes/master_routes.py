# -*- coding: utf-8 -*-
"""
backend/app/routes/master_routes.py

Router maestro bajo /api:
  - /api/payments/mitec/*   checkout, callback y webhook de MITEC
  - /api/provisioning/*     reintento manual de aprovisionamiento

Autor: Ixchel Beristain
Fecha: 2026-10-13
"""
from __future__ import annotations

import logging

from fastapi import APIRouter

from app.modules.payments.routes import router as payments_router
from app.modules.provisioning.routes import router as provisioning_router

logger = logging.getLogger(__name__)

api = APIRouter(prefix="/api")

_loaded: list[str] = []


def _include(target: APIRouter, router: APIRouter, name: str) -> None:
    """Incluye un router en la capa dada y registra trazabilidad en logs."""
    target.include_router(router)
    _loaded.append(f"{target.prefix or '/'}:{name}")
    logger.debug(
        "router_mounted name=%s prefix=%s router_prefix=%s",
        name, target.prefix or "/", getattr(router, "prefix", ""),
    )


_include(api, payments_router, "payments.mitec")
_include(api, provisioning_router, "provisioning")


def loaded_routers() -> list[str]:
    return list(_loaded)


__all__ = ["api", "loaded_routers"]

# Fin del archivo backend/app/routes/master_routes.py
