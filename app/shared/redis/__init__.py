# -*- coding: utf-8 -*-
"""
backend/app/shared/redis/__init__.py

Cliente Redis async compartido (caché del token de Partner Center).
Opcional: sin REDIS_URL los consumidores usan su caché en proceso.
"""

from .client import (
    get_async_redis_client,
    close_async_redis_client,
    RedisClientManager,
)

__all__ = [
    "get_async_redis_client",
    "close_async_redis_client",
    "RedisClientManager",
]
# Fin del archivo backend/app/shared/redis/__init__.py
