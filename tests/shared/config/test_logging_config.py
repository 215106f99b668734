# -*- coding: utf-8 -*-
import logging

import pytest

json_logger = pytest.importorskip(
    "pythonjsonlogger", reason="Se omite test JSON si no está instalado python-json-logger"
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(logging.NOTSET)


def test_setup_logging_plain():
    from app.shared.config.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="plain")
    logger = logging.getLogger("test_plain")
    logger.debug("hello plain")
    assert any(isinstance(h, logging.StreamHandler) for h in logging.getLogger().handlers)
    assert logging.getLogger("httpx").level == logging.DEBUG


def test_setup_logging_json():
    from app.shared.config.logging_config import setup_logging
    setup_logging(level="INFO", fmt="json")
    logging.getLogger("test_json").info("payment_response_reconciled reference=MKT1_X path=exact_session")
    found = False
    for h in logging.getLogger().handlers:
        fmt = getattr(h, "formatter", None)
        if fmt is not None and fmt.__class__.__module__.startswith("pythonjsonlogger"):
            found = True
            break
    assert found, "Se esperaba JsonFormatter activo en modo json"
    # Librerías ruidosas limitadas fuera de DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
# Fin del archivo backend/tests/shared/config/test_logging_config.py
