# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/routes/provisioning_routes.py

Reintento manual de aprovisionamiento.

PATH: /api/provisioning/orders/{order_id}/retry
Método: POST
Protegido: Authorization: Bearer <APP_SERVICE_TOKEN>

El reintento manual ignora el límite de intentos automáticos.
Respuestas:
  - 200 completed
  - 409 skipped_locked (otro proceso tiene el lease)
  - 422 not_eligible (no existe, cancelada o no pagada)
  - 502 failed (Partner Center rechazó; detalle estructurado en "error")

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from app.shared.internal_auth import InternalServiceAuth
from app.modules.provisioning.services import ProvisioningRetryService, RetryStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/provisioning", tags=["provisioning"])

_STATUS_CODES = {
    RetryStatus.COMPLETED: status.HTTP_200_OK,
    RetryStatus.FAILED: status.HTTP_502_BAD_GATEWAY,
    RetryStatus.SKIPPED_LOCKED: status.HTTP_409_CONFLICT,
    RetryStatus.NOT_ELIGIBLE: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


class RetryResponse(BaseModel):
    order_id: int
    status: str
    attempts: Optional[int] = None
    error: Optional[dict[str, Any]] = None


def get_retry_service() -> ProvisioningRetryService:
    return ProvisioningRetryService()


@router.post(
    "/orders/{order_id}/retry",
    response_model=RetryResponse,
    summary="Reintentar aprovisionamiento de una orden",
)
async def retry_order_provisioning(
    order_id: int,
    _auth: InternalServiceAuth,
    service: ProvisioningRetryService = Depends(get_retry_service),
) -> JSONResponse:
    result = await service.retry_order(order_id, manual=True)
    logger.info("provisioning_manual_retry order_id=%s status=%s", order_id, result.status)
    body = RetryResponse(**result.to_dict())
    return JSONResponse(status_code=_STATUS_CODES[result.status], content=body.model_dump())


__all__ = ["router", "get_retry_service"]
# Fin del archivo backend/app/modules/provisioning/routes/provisioning_routes.py
