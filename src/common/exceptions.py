# src/common/exceptions.py
"""
Доменные исключения.
API слой сопоставляет их с HTTP кодами ответа.
"""

from __future__ import annotations

from typing import Any


class RideAppError(Exception):
    """Базовое исключение приложения."""

    code: str = "error"
    message_key: str = "ERROR"

    def __init__(
        self,
        message: str = "",
        *,
        message_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if message_key is not None:
            self.message_key = message_key
        self.details = details or {}


class NotFoundError(RideAppError):
    """Поездка, водитель или пользователь не найдены."""
    code = "not_found"
    message_key = "NOT_FOUND"


class InvalidTransitionError(RideAppError):
    """Текущий статус поездки не допускает запрошенный переход."""
    code = "invalid_transition"
    message_key = "INVALID_TRANSITION"


class ForbiddenError(RideAppError):
    """Роль, владение или подписка не позволяют выполнить действие."""
    code = "forbidden"
    message_key = "FORBIDDEN"


class ValidationError(RideAppError):
    """Некорректные входные данные."""
    code = "validation_error"
    message_key = "INVALID_DATA"


class RateLimitedError(RideAppError):
    """Превышен лимит попыток."""
    code = "rate_limited"
    message_key = "RATE_LIMITED"


class UnauthorizedError(RideAppError):
    """Нет токена доступа, токен недействителен или неверные учётные данные."""
    code = "unauthorized"
    message_key = "UNAUTHORIZED"
