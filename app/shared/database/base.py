# -*- coding: utf-8 -*-
"""
backend/app/shared/database/base.py

Base declarativa y convención de nombres para modelos ORM.

Este módulo proporciona:
- Base: clase base declarativa de SQLAlchemy
- NAMING_CONVENTION: convención de nombres para constraints
- utcnow(): reloj timezone-aware usado por servicios y modelos

Los estados (carrito, orden, respuesta de pago...) se guardan como
String con los valores de StrEnum; no se usan tipos ENUM de PostgreSQL
para que los tests corran sobre SQLite sin adaptaciones.

Autor: Ixchel Beristain
Fecha: 2026-10-07
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Integer, MetaData
from sqlalchemy.orm import DeclarativeBase

# ===== NAMING CONVENTION =====
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# ===== BASE DECLARATIVA =====
class Base(DeclarativeBase):
    """
    Base declarativa para todos los modelos ORM de Readymarket.
    Incluye convención de nombres para constraints.
    """
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# BIGINT en PostgreSQL; INTEGER en SQLite para conservar el alias de rowid (autoincremento)
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """
    Normaliza un datetime leído de la BD a UTC aware.
    SQLite devuelve datetimes naive aunque la columna sea timezone=True.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["Base", "NAMING_CONVENTION", "BigIntPK", "utcnow", "as_utc"]

# Fin del archivo backend/app/shared/database/base.py
