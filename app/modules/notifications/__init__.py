# -*- coding: utf-8 -*-
"""
backend/app/modules/notifications/__init__.py

Alertas operativas multicanal (correo + WhatsApp) del pipeline de pedidos.
"""
