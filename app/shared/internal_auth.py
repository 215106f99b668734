# -*- coding: utf-8 -*-
"""
backend/app/shared/internal_auth.py

Autenticación de servicio interno para endpoints protegidos:
- webhook interno de MITEC (callback público -> núcleo de la aplicación)
- reintento manual de aprovisionamiento

Uso:
    from app.shared.internal_auth import InternalServiceAuth

Autor: Ixchel Beristain
Fecha: 2026-10-08
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from app.shared.config.config_loader import get_settings

logger = logging.getLogger(__name__)


async def require_internal_service_token(
    authorization: Annotated[str | None, Header()] = None,
) -> bool:
    """
    Valida el header Authorization: Bearer <token> contra APP_SERVICE_TOKEN.

    Raises:
        HTTPException 401: Sin header o formato inválido.
        HTTPException 403: Token inválido.
        HTTPException 500: Token no configurado en el backend.
    """
    token_value = get_settings().internal_service_token

    if not token_value or not token_value.get_secret_value():
        logger.error("internal_service_token_not_configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal service token not configured",
        )

    if not authorization:
        logger.warning("internal_auth_missing_header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    scheme, _, provided_token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not provided_token.strip():
        logger.warning("internal_auth_invalid_format")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization format. Use: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Comparación timing-safe
    if not secrets.compare_digest(provided_token.strip(), token_value.get_secret_value()):
        logger.warning("internal_auth_invalid_token")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid service token",
        )

    return True


InternalServiceAuth = Annotated[bool, Depends(require_internal_service_token)]


__all__ = [
    "require_internal_service_token",
    "InternalServiceAuth",
]
