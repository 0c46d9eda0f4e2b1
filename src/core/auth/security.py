# src/core/auth/security.py
"""
Ограничение частоты попыток входа и валидация пользовательского ввода.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Callable, Optional


EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SCRIPT_REGEX = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
TAG_REGEX = re.compile(r"<[^>]+>")

MAX_EMAIL_LENGTH = 254
MIN_PASSWORD_LENGTH = 6
# Предел bcrypt: длина пароля в байтах UTF-8
MAX_PASSWORD_BYTES = 72
WEAK_PASSWORDS = frozenset({"123456", "password", "senha123", "123123", "qwerty"})


@dataclass
class ValidationResult:
    """Результат проверки ввода."""
    is_valid: bool
    message_key: Optional[str] = None


@dataclass
class _RateLimitEntry:
    count: int
    reset_at: float


class SecurityManager:
    """
    Менеджер безопасности.

    Реализует:
    - Ограничение числа попыток на ключ в окне времени
    - Проверку email и сложности пароля
    - Очистку ввода от HTML
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: int = 900,
        max_input_length: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_attempts = max_attempts
        self._window = window_seconds
        self._max_input_length = max_input_length
        self._clock = clock
        self._entries: dict[str, _RateLimitEntry] = {}
        self._next_sweep_at = clock() + window_seconds

    # =========================================================================
    # ОГРАНИЧЕНИЕ ПОПЫТОК
    # =========================================================================

    def check_rate_limit(self, key: str) -> bool:
        """
        Регистрирует попытку и проверяет лимит.

        Returns:
            True, если попытка разрешена
        """
        now = self._clock()
        # Истёкшие ключи удаляются не чаще раза за окно
        if now >= self._next_sweep_at:
            self.cleanup()
            self._next_sweep_at = now + self._window

        entry = self._entries.get(key)

        if entry is None or now > entry.reset_at:
            self._entries[key] = _RateLimitEntry(count=1, reset_at=now + self._window)
            return True

        if entry.count >= self._max_attempts:
            return False

        entry.count += 1
        return True

    def reset_rate_limit(self, key: str) -> None:
        """Сбрасывает счётчик (после успешного входа)."""
        self._entries.pop(key, None)

    @property
    def tracked_keys(self) -> int:
        """Число отслеживаемых ключей."""
        return len(self._entries)

    def cleanup(self) -> int:
        """Удаляет истёкшие записи. Возвращает число удалённых."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now > entry.reset_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    # =========================================================================
    # ВАЛИДАЦИЯ
    # =========================================================================

    @staticmethod
    def validate_password_strength(password: str) -> ValidationResult:
        if len(password) < MIN_PASSWORD_LENGTH:
            return ValidationResult(False, "PASSWORD_TOO_SHORT")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            return ValidationResult(False, "PASSWORD_TOO_LONG")
        if password.lower() in WEAK_PASSWORDS:
            return ValidationResult(False, "PASSWORD_TOO_WEAK")
        return ValidationResult(True)

    @staticmethod
    def validate_email(email: Optional[str]) -> ValidationResult:
        if not email or not email.strip():
            return ValidationResult(False, "EMAIL_REQUIRED")
        if not EMAIL_REGEX.match(email.strip()):
            return ValidationResult(False, "EMAIL_INVALID")
        if len(email) > MAX_EMAIL_LENGTH:
            return ValidationResult(False, "EMAIL_TOO_LONG")
        return ValidationResult(True)

    def sanitize_input(self, value: Optional[str]) -> str:
        """Удаляет скрипты и HTML теги, обрезает пробелы и длину."""
        if not isinstance(value, str):
            return ""
        cleaned = SCRIPT_REGEX.sub("", value.strip())
        cleaned = TAG_REGEX.sub("", cleaned)
        return cleaned[: self._max_input_length]
