# -*- coding: utf-8 -*-
"""
backend/app/modules/orders/__init__.py

Módulo Orders: catálogo (fuente de snapshots), carritos, materialización
de órdenes, folios, compensación de pagos fallidos y confirmación de compra.
"""
