# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class UserRole(str, Enum):
    """Роли пользователей."""
    PASSENGER = "passenger"
    DRIVER = "driver"
    ADMIN = "admin"

    def __str__(self) -> str:
        return self.value


class RideStatus(str, Enum):
    """Статусы поездки."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class SubscriptionStatus(str, Enum):
    """Статусы подписки водителя."""
    TRIAL = "trial"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


class AuditAction:
    """Теги действий для журнала аудита."""
    REGISTER = "register"
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    REGISTER_FAILED_EMAIL_EXISTS = "register_failed_email_exists"

    RIDE_REQUESTED = "ride_requested"
    RIDE_ACCEPTED = "ride_accepted"
    RIDE_STARTED = "ride_started"
    RIDE_COMPLETED = "ride_completed"
    RIDE_CANCELLED = "ride_cancelled"

    DRIVER_FAVORITED = "driver_favorited"
    DRIVER_UNFAVORITED = "driver_unfavorited"

    ADMIN_DRIVER_VERIFY = "admin_driver_verify"
    ADMIN_SUBSCRIPTION_UPDATE = "admin_subscription_update"


class MessageType:
    """Типы сообщений WebSocket канала."""
    AUTH = "auth"
    AUTH_SUCCESS = "auth_success"
    AUTH_ERROR = "auth_error"
    PING = "ping"
    PONG = "pong"

    NEW_RIDE = "new_ride"
    RIDE_ACCEPTED = "ride_accepted"
    RIDE_STARTED = "ride_started"
    RIDE_COMPLETED = "ride_completed"
