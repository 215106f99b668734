# -*- coding: utf-8 -*-
"""
backend/app/observability/prom.py

Observabilidad Prometheus de Readymarket.

Incluye:
- Middleware ASGI para conteo y latencia por ruta (template)/estado
- Contadores del pipeline de pago y aprovisionamiento
- Endpoint /metrics (pull model, soporte multiproceso)

Autor: Ixchel Beristain
Fecha: 2026-10-12
"""
from __future__ import annotations

import os
import time
from typing import Optional

from fastapi import FastAPI
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
    multiprocess,
)
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

# ===== HTTP =====
REQUEST_COUNT = Counter(
    "readymarket_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "readymarket_http_request_latency_seconds",
    "Latency per request (s)",
    ["method", "path", "status"],
)

# ===== Pipeline =====
mitec_callbacks_total = Counter(
    "readymarket_mitec_callbacks_total",
    "Callbacks de MITEC por estado resultante",
    ["status"],
)
payment_reconciliation_total = Counter(
    "readymarket_payment_reconciliation_total",
    "Respuestas conciliadas por camino de resolución",
    ["path"],
)
orders_materialized_total = Counter(
    "readymarket_orders_materialized_total",
    "Órdenes creadas a partir de pagos aprobados",
)
provisioning_attempts_total = Counter(
    "readymarket_provisioning_attempts_total",
    "Intentos de aprovisionamiento por resultado",
    ["outcome"],
)
notifications_total = Counter(
    "readymarket_notifications_total",
    "Notificaciones operativas por canal y resultado",
    ["channel", "outcome"],
)


class PrometheusMiddleware:
    """
    Middleware ASGI: conteo y latencia por método/ruta/estatus.
    La etiqueta path usa el template de la ruta resuelta (/orders/{order_id})
    para no crear una serie por id.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        method = scope.get("method", "GET")
        start = time.perf_counter()
        status_holder = {"value": "500"}

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                status_holder["value"] = str(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            route = scope.get("route")
            path = getattr(route, "path", None) or "unmatched"
            status = status_holder["value"]
            REQUEST_LATENCY.labels(method, path, status).observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(method, path, status).inc()


def _build_registry() -> Optional[CollectorRegistry]:
    """CollectorRegistry multiproceso si PROMETHEUS_MULTIPROC_DIR está definido."""
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return registry
    return None


def mount_metrics(app: FastAPI, path: str = "/metrics") -> None:
    registry = _build_registry()

    @app.get(path, include_in_schema=False)
    def metrics():
        data = generate_latest(registry) if registry else generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def setup_observability(app: FastAPI) -> None:
    """Agrega el middleware y monta /metrics."""
    app.add_middleware(PrometheusMiddleware)
    mount_metrics(app)


__all__ = [
    "PrometheusMiddleware",
    "setup_observability",
    "mitec_callbacks_total",
    "payment_reconciliation_total",
    "orders_materialized_total",
    "provisioning_attempts_total",
    "notifications_total",
]
# Fin del archivo backend/app/observability/prom.py
