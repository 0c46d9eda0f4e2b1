# src/core/auth/__init__.py
"""
Аутентификация: хеширование паролей, JWT токены, ограничение попыток.
"""

from src.core.auth.passwords import PasswordHasher
from src.core.auth.security import SecurityManager, ValidationResult
from src.core.auth.tokens import TokenService

__all__ = [
    "PasswordHasher",
    "SecurityManager",
    "ValidationResult",
    "TokenService",
]
