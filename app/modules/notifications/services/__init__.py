# -*- coding: utf-8 -*-
"""
backend/app/modules/notifications/services/__init__.py
"""

from .message_formatter import AlertContext, build_email_bodies, build_subject, build_whatsapp_message
from .notification_fanout import FanoutReport, NotificationFanout

__all__ = [
    "AlertContext",
    "build_subject",
    "build_email_bodies",
    "build_whatsapp_message",
    "NotificationFanout",
    "FanoutReport",
]
