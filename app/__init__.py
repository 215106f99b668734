# -*- coding: utf-8 -*-
"""
backend/app/__init__.py

Paquete principal del backend de Readymarket.

En Windows fuerza el event loop selector (asyncpg + SQLAlchemy async).

Autor: Ixchel Beristain
Fecha: 2026-10-06
"""
import sys
import asyncio

if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Fin del archivo backend/app/__init__.py
