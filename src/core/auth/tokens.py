# src/core/auth/tokens.py
"""
Выпуск и проверка JWT токенов доступа.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

import jwt

from src.common.constants import UserRole
from src.core.users.models import utc_now


class TokenService:
    """
    JWT (HS256) с claims {userId, role, exp}.

    Проверка подписи и срока действия выполняется здесь;
    существование пользователя проверяет UserService.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl_days: int = 7,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(days=ttl_days)

    def issue(self, user_id: str, role: UserRole, now: Optional[datetime] = None) -> str:
        """Создаёт токен для пользователя."""
        issued_at = now or utc_now()
        payload = {
            "userId": user_id,
            "role": str(role),
            "iat": issued_at,
            "exp": issued_at + self._ttl,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: Optional[str]) -> Optional[dict[str, Any]]:
        """
        Декодирует токен.

        Returns:
            Claims токена, либо None для пустого, повреждённого или просроченного токена
        """
        if not isinstance(token, str) or not token.strip():
            return None
        try:
            payload = jwt.decode(token.strip(), self._secret, algorithms=[self._algorithm])
        except jwt.PyJWTError:
            return None

        if not isinstance(payload.get("userId"), str) or not isinstance(payload.get("role"), str):
            return None
        return payload
