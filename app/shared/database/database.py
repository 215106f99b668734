# -*- coding: utf-8 -*-
"""
backend/app/shared/database/database.py

SQLAlchemy async + asyncpg. NullPool en la app cuando se conecta a
PostgreSQL detrás de PgBouncer; TLS según DB_SSLMODE.

Provee:
- engine (create_async_engine)
- SessionLocal (async_sessionmaker)
- Dependencia FastAPI: get_async_session
- Context managers: get_async_session_context() (jobs/CLI)
- check_database_health()

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.shared.config import settings
from app.shared.database.base import Base

logger = logging.getLogger(__name__)


def build_ssl_context() -> ssl.SSLContext:
    """SSLContext con verificación estricta de certificado y hostname."""
    ctx = ssl.create_default_context(purpose=ssl.Purpose.SERVER_AUTH)
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def _prepared_statement_name_func() -> str:
    # Nombres únicos: evita colisiones en PgBouncer transaction mode
    return f"__asyncpg_{uuid4().hex[:8]}__"


def _engine_kwargs(url: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": bool(settings.db_echo_sql)}
    if not url.startswith("postgresql+asyncpg"):
        return kwargs

    connect_args: dict[str, Any] = {
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "prepared_statement_name_func": _prepared_statement_name_func,
        "server_settings": {"search_path": "public"},
        "command_timeout": float(settings.db_command_timeout_s),
    }
    if settings.db_sslmode == "require":
        connect_args["ssl"] = build_ssl_context()
    elif settings.db_sslmode == "disable":
        connect_args["ssl"] = False

    kwargs.update(
        poolclass=NullPool,
        connect_args=connect_args,
    )
    return kwargs


DATABASE_URL: str = settings.database_url

engine = create_async_engine(DATABASE_URL, **_engine_kwargs(DATABASE_URL))

SessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
    autoflush=False,
)


# ── Dependencia FastAPI
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
        except SQLAlchemyError:
            # rollback para liberar cualquier transacción/lock
            await session.rollback()
            raise
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Context manager para jobs del scheduler y CLI
@asynccontextmanager
async def get_async_session_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Abre una sesión fuera del ciclo request/response.
    Quien la usa decide commit(); al salir se hace rollback de lo pendiente.
    """
    async with SessionLocal() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


# ── Health check
async def check_database_health(timeout_s: float = 3.0, sql: str = "SELECT 1") -> bool:
    """
    Verifica conectividad a la base de datos.

    Returns:
        True si la conexión es exitosa, False en caso contrario
    """
    try:
        async with asyncio.timeout(timeout_s):
            async with engine.connect() as conn:
                await conn.execute(text(sql))
        return True
    except (SQLAlchemyError, OSError, TimeoutError) as e:
        logger.warning("database_health_failed error=%s", e)
        return False


__all__ = [
    "engine",
    "SessionLocal",
    "Base",
    "get_async_session",
    "get_async_session_context",
    "check_database_health",
]
# Fin del archivo backend/app/shared/database/database.py
