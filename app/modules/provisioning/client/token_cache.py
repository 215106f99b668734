# -*- coding: utf-8 -*-
"""
backend/app/modules/provisioning/client/token_cache.py

Caché del bearer token de Partner Center.

- Redis si está disponible (compartido entre procesos y workers).
- Respaldo en proceso si Redis no está configurado o falla.
- Dos refrescos concurrentes son aceptables: ambos tokens son válidos
  y gana la última escritura.

Autor: Ixchel Beristain
Fecha: 2026-10-11
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from redis.exceptions import RedisError

from app.shared.redis import get_async_redis_client

logger = logging.getLogger(__name__)

TOKEN_CACHE_KEY = "partner_center:access_token"


class TokenCache:
    def __init__(self, ttl_seconds: int = 3000, key: str = TOKEN_CACHE_KEY, use_redis: bool = True):
        self._ttl = ttl_seconds
        self._key = key
        self._use_redis = use_redis
        self._local_token: Optional[str] = None
        self._local_expires_at = 0.0

    async def get(self) -> Optional[str]:
        if self._use_redis:
            client = await get_async_redis_client()
            if client is not None:
                try:
                    token = await client.get(self._key)
                except (RedisError, OSError) as e:
                    logger.warning("token_cache_redis_get_failed error=%s", e)
                else:
                    if token:
                        return token

        if self._local_token and time.monotonic() < self._local_expires_at:
            return self._local_token
        return None

    async def set(self, token: str) -> None:
        self._local_token = token
        self._local_expires_at = time.monotonic() + self._ttl

        if self._use_redis:
            client = await get_async_redis_client()
            if client is not None:
                try:
                    await client.set(self._key, token, ex=self._ttl)
                except (RedisError, OSError) as e:
                    logger.warning("token_cache_redis_set_failed error=%s", e)

    async def invalidate(self) -> None:
        self._local_token = None
        self._local_expires_at = 0.0
        if self._use_redis:
            client = await get_async_redis_client()
            if client is not None:
                try:
                    await client.delete(self._key)
                except (RedisError, OSError) as e:
                    logger.warning("token_cache_redis_delete_failed error=%s", e)


__all__ = ["TokenCache", "TOKEN_CACHE_KEY"]
# Fin del archivo backend/app/modules/provisioning/client/token_cache.py
