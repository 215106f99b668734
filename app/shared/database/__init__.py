# -*- coding: utf-8 -*-
"""
backend/app/shared/database/__init__.py

Re-exporta utilidades comunes de base de datos.

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

from __future__ import annotations

from .base import Base, NAMING_CONVENTION, BigIntPK, utcnow, as_utc
from .database import (
    engine,
    SessionLocal,
    get_async_session,
    get_async_session_context,
    check_database_health,
)
from .repository import BaseRepository

__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "NAMING_CONVENTION",
    "BigIntPK",
    "utcnow",
    "as_utc",
    "BaseRepository",
    "get_async_session",
    "get_async_session_context",
    "check_database_health",
]

# Fin del archivo backend/app/shared/database/__init__.py
