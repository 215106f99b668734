# -*- coding: utf-8 -*-
"""
backend/app/shared/__init__.py

Infraestructura común de Readymarket: configuración, base de datos,
Redis, scheduler, integraciones de correo/WhatsApp y auth interna.

Sin efectos en import-time; los settings se cargan al primer
get_settings().
"""
# Fin del archivo backend/app/shared/__init__.py
