# -*- coding: utf-8 -*-
"""
backend/app/shared/database/repository.py

Repositorio base para los agregados de Readymarket (carrito, orden,
sesión y respuesta de pago, suscripción).

Los repositorios reciben la sesión en cada llamada y solo hacen flush();
el commit/rollback es de quien abrió la transacción (ruta, job o CLI).

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")  # modelo ORM


class BaseRepository(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    async def get(self, session: AsyncSession, obj_id: Any) -> Optional[T]:
        return await session.get(self.model, obj_id)

    async def add(self, session: AsyncSession, obj: T) -> T:
        """Agrega y hace flush para que el id quede asignado."""
        session.add(obj)
        await session.flush()
        return obj


__all__ = ["BaseRepository"]
# Fin del archivo backend/app/shared/database/repository.py
