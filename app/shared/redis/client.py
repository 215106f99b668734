# -*- coding: utf-8 -*-
"""
backend/app/shared/redis/client.py

Cliente Redis async compartido (singleton) para Readymarket.
Lo usa la caché del token de Partner Center, compartida entre procesos.

- Conexión perezosa (no bloquea en import)
- Best-effort: devuelve None si REDIS_URL no está configurado o falla
  la conexión; el consumidor decide su alternativa en proceso.

Autor: Ixchel Beristain
Fecha: 2026-10-08
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisClientManager:
    """Administra un único cliente Redis async con conexión perezosa."""

    _instance: Optional["RedisClientManager"] = None

    @classmethod
    def get_instance(cls) -> "RedisClientManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    async def reset_instance_async(cls) -> None:
        """Cierra y descarta el singleton (tests)."""
        if cls._instance is not None:
            await cls._instance.close()
        cls._instance = None

    def __init__(self, redis_url: Optional[str] = None):
        self._redis_url = redis_url if redis_url is not None else os.getenv("REDIS_URL")
        self._client: Optional[aioredis.Redis] = None
        self._connected: Optional[bool] = None  # None = no intentado
        self._connect_lock = asyncio.Lock()

    @property
    def is_configured(self) -> bool:
        return bool(self._redis_url)

    async def get_client(self) -> Optional[aioredis.Redis]:
        """
        Devuelve el cliente (conecta la primera vez) o None si no hay Redis.
        Un intento fallido no se repite durante la vida del proceso.
        """
        if self._connected is not None:
            return self._client if self._connected else None

        if not self.is_configured:
            self._connected = False
            return None

        async with self._connect_lock:
            if self._connected is not None:
                return self._client if self._connected else None

            client = aioredis.from_url(
                self._redis_url,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            try:
                await client.ping()
            except (RedisError, OSError) as e:
                logger.warning("redis_connect_failed error=%s", e)
                await client.aclose()
                self._connected = False
                return None

            self._client = client
            self._connected = True
            logger.info("redis_connected pid=%d", os.getpid())
            return client

    async def close(self) -> None:
        if self._client is not None:
            try:
                await self._client.aclose()
            except (RedisError, OSError) as e:
                logger.warning("redis_close_failed error=%s", e)
            finally:
                self._client = None
                self._connected = None


async def get_async_redis_client() -> Optional[aioredis.Redis]:
    return await RedisClientManager.get_instance().get_client()


async def close_async_redis_client() -> None:
    await RedisClientManager.get_instance().close()


__all__ = [
    "get_async_redis_client",
    "close_async_redis_client",
    "RedisClientManager",
]
