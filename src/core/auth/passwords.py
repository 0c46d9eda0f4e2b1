# src/core/auth/passwords.py
"""
Хеширование паролей (bcrypt).
Вычисления выполняются в пуле потоков, чтобы не блокировать event loop.
"""

from __future__ import annotations

import asyncio

import bcrypt


# bcrypt учитывает только первые 72 байта пароля
BCRYPT_MAX_BYTES = 72


class PasswordHasher:
    """Обёртка над bcrypt с настраиваемым числом раундов."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def _hash_sync(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def _verify_sync(password: str, password_hash: str) -> bool:
        encoded = password.encode("utf-8")
        if len(encoded) > BCRYPT_MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError:
            return False

    async def hash(self, password: str) -> str:
        """
        Хеширует пароль.

        Raises:
            ValueError: Пароль длиннее 72 байт в UTF-8
        """
        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Пароль длиннее {BCRYPT_MAX_BYTES} байт")
        return await asyncio.to_thread(self._hash_sync, password)

    async def verify(self, password: str, password_hash: str) -> bool:
        """Проверяет пароль. Повреждённый хеш считается несовпадением."""
        return await asyncio.to_thread(self._verify_sync, password, password_hash)
