# src/core/notifications/__init__.py
"""
Домен уведомлений.
Адресная рассылка событий жизненного цикла поездки.
"""

from src.core.notifications.service import NotificationChannel, NotificationService

__all__ = [
    "NotificationChannel",
    "NotificationService",
]
