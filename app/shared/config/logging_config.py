# -*- coding: utf-8 -*-
"""
backend/app/shared/config/logging_config.py

Configuración centralizada de logging para Readymarket.
Soporta formato plain (desarrollo) y json (producción, python-json-logger).

Los eventos del pipeline de pago se escriben como `evento clave=valor`
(p. ej. "payment_response_reconciled reference=MKT... path=exact_session")
para que el formatter JSON los conserve en el campo message.

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

import logging.config
from typing import Literal

# Librerías ruidosas que se limitan a WARNING salvo en DEBUG
_NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "asyncio")


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    fmt: Literal["plain", "pretty", "json"] = "plain"
) -> None:
    """
    Configura el sistema de logging de la aplicación.

    Args:
        level: Nivel del logger raíz
        fmt: Formato de salida (plain, pretty, json); pretty == plain

    Ejemplos:
        >>> setup_logging("INFO", "plain")
        >>> setup_logging("WARNING", "json")
    """
    use_json = fmt == "json"
    level = level.upper()

    formatters = {
        "default": {
            "format": "%(levelname)s [%(name)s]: %(message)s"
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
        },
    }

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json" if use_json else "default",
            "stream": "ext://sys.stdout",
        }
    }

    third_party_level = "DEBUG" if level == "DEBUG" else "WARNING"
    loggers = {name: {"level": third_party_level} for name in _NOISY_LOGGERS}

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "handlers": handlers,
        "loggers": loggers,
        "root": {
            "handlers": ["console"],
            "level": level,
        },
    })


__all__ = ["setup_logging"]
# Fin del archivo backend/app/shared/config/logging_config.py
