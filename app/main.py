# -*- coding: utf-8 -*-
"""
backend/app/main.py

Punto de entrada principal del backend de Readymarket.

Ajustes clave:
- .env cargado antes de cualquier import que lea variables de entorno
- Logging centralizado (setup_logging, JSON opcional)
- Observabilidad Prometheus (/metrics) vía app.observability.prom
- Scheduler con jobs de limpieza de sesiones de pago y reintento de
  aprovisionamiento (SCHEDULER_ENABLED)
- CORS desde CORS_ORIGINS; en producción sin comodín
- Health /health delegado al paquete app.routes (health_routes.py)

Autor: Ixchel Beristain
Fecha: 2026-10-13
"""

import sys
import asyncio

if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

# ---------------------------------------------------------------------------
# Cargar .env ANTES de cualquier import que use os.getenv
# En DEV: override=True para que .env mande sobre variables del entorno
# En PROD: override=False para respetar variables del entorno
# ---------------------------------------------------------------------------
from dotenv import load_dotenv

_ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
_ENVIRONMENT = os.getenv("PYTHON_ENV", "development").strip().strip('"').strip("'").lower()
_override_env = _ENVIRONMENT not in ("production", "test")
load_dotenv(dotenv_path=_ENV_PATH, override=_override_env)

import anyio
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.shared.config import get_settings
from app.shared.config.logging_config import setup_logging
from app.observability.prom import setup_observability

_settings = get_settings()
setup_logging(_settings.log_level, _settings.log_format)
logger = logging.getLogger(__name__)

logger.info("dotenv_loaded path=%s override=%s env=%s", _ENV_PATH, _override_env, _ENVIRONMENT)

from app.routes import router as app_router  # noqa: E402


def _register_jobs() -> None:
    from app.modules.payments.jobs import register_clean_sessions_job
    from app.modules.provisioning.jobs import register_retry_provisioning_job

    register_clean_sessions_job()
    register_retry_provisioning_job()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ────────── STARTUP ──────────
    settings = get_settings()

    if settings.scheduler_enabled:
        from app.shared.scheduler import get_scheduler

        _register_jobs()
        get_scheduler().start()
        logger.info("⏰ Scheduler iniciado con jobs programados")
    else:
        logger.info("⏰ Scheduler deshabilitado (SCHEDULER_ENABLED=false)")

    logger.info("🟢 Backend de Readymarket iniciado (env=%s)", settings.python_env)

    try:
        yield
    finally:
        # ────────── SHUTDOWN ──────────
        logger.info("🔴 Iniciando shutdown ordenado...")
        with anyio.CancelScope(shield=True):
            if settings.scheduler_enabled:
                from app.shared.scheduler import get_scheduler

                get_scheduler().shutdown(wait=True)
                logger.info("⏰ Scheduler detenido")

            from app.shared.redis import close_async_redis_client

            await close_async_redis_client()

            from app.shared.database.database import engine

            await engine.dispose()
        logger.info("🔴 Backend de Readymarket apagado.")


openapi_tags = [
    {"name": "payments-mitec", "description": "Checkout, callback y webhook de la pasarela MITEC"},
    {"name": "provisioning", "description": "Aprovisionamiento en Microsoft Partner Center"},
]

app = FastAPI(
    title="Readymarket API",
    description="Pagos con MITEC y aprovisionamiento de licencias en Partner Center",
    version="1.0.0",
    lifespan=lifespan,
    openapi_tags=openapi_tags,
)


# ═══════════════════════════════════════════════════════════════════════════════
# CORS
# ═══════════════════════════════════════════════════════════════════════════════

def _configure_cors(app_instance: FastAPI) -> dict:
    """
    Configura CORS middleware.

    Returns:
        dict con la configuración aplicada para logging.
    """
    settings = get_settings()
    origins_list = settings.get_cors_origins()

    if settings.is_prod and origins_list == ["*"]:
        logger.error("❌ REFUSING WILDCARD CORS IN PRODUCTION! Set explicit CORS_ORIGINS.")
        return {"cors_disabled": True, "allow_origins": []}

    # "*" con allow_credentials=True es inválido en navegadores
    is_wildcard_only = origins_list == ["*"]
    cors_config = {
        "allow_origins": origins_list,
        "allow_credentials": not is_wildcard_only,
        "allow_methods": ["*"] if is_wildcard_only else ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        "allow_headers": ["*"],
        "max_age": 600,
    }
    app_instance.add_middleware(CORSMiddleware, **cors_config)
    logger.info("cors_configured origins=%s credentials=%s", origins_list, cors_config["allow_credentials"])
    return cors_config


# IMPORTANTE: el orden real de ejecución de middlewares en Starlette es inverso al registro.
# Registramos CORS AL FINAL para que se ejecute PRIMERO (outermost).
if _settings.metrics_enabled:
    setup_observability(app)

_cors_config = _configure_cors(app)

app.include_router(app_router)


@app.get("/")
async def root():
    return {"service": "Readymarket Backend", "status": "active"}


@app.get("/api/health/live")
async def health_live():
    return {"live": True}


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=_settings.app_host,
        port=_settings.app_port,
        reload=_settings.is_dev,
    )

# Fin del archivo backend/app/main.py
