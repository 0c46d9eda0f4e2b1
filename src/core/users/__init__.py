# src/core/users/__init__.py
"""
Домен пользователей.
Модели пользователей, водителей и подписок.
Сервис импортируется напрямую из src.core.users.service.
"""

from src.core.users.models import (
    User,
    Driver,
    Subscription,
    DriverWithUser,
    UserWithDriver,
)

__all__ = [
    "User",
    "Driver",
    "Subscription",
    "DriverWithUser",
    "UserWithDriver",
]
