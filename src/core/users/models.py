# src/core/users/models.py
"""
Модели данных пользователей, водителей и подписок.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import Field, field_validator

from src.common.constants import UserRole, SubscriptionStatus
from src.shared.models.common import CamelModel, SnapshotModel


def utc_now() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


def normalize_license_plate(plate: str) -> str:
    """Нормализует номер автомобиля: без крайних пробелов, в верхнем регистре."""
    return plate.strip().upper()


def normalize_email(email: str) -> str:
    """Нормализует email для поиска и проверки уникальности."""
    return email.strip().lower()


class User(SnapshotModel):
    """Модель пользователя."""

    id: str = Field(..., description="ID пользователя")
    email: str = Field(..., description="Email (уникальный)")
    password_hash: str = Field(..., exclude=True, repr=False, description="bcrypt хеш пароля")
    name: str = Field(..., description="Отображаемое имя")
    phone: Optional[str] = Field(None, description="Номер телефона")
    role: UserRole = Field(UserRole.PASSENGER, description="Роль пользователя")
    created_at: datetime = Field(default_factory=utc_now, description="Дата регистрации")


class Driver(SnapshotModel):
    """Профиль водителя (расширение User с ролью driver)."""

    id: str = Field(..., description="ID водителя")
    user_id: str = Field(..., description="ID пользователя-владельца")
    license_plate: str = Field(..., description="Номер автомобиля (нормализованный)")
    vehicle_model: Optional[str] = Field(None, description="Модель автомобиля")
    is_verified: bool = Field(False, description="Проверен администратором")
    rating: Optional[float] = Field(None, description="Средний рейтинг")
    total_rides: int = Field(0, ge=0, description="Завершённых поездок")


class Subscription(SnapshotModel):
    """Подписка водителя."""

    id: str = Field(..., description="ID подписки")
    driver_id: str = Field(..., description="ID водителя")
    status: SubscriptionStatus = Field(SubscriptionStatus.TRIAL, description="Статус подписки")
    trial_ends_at: Optional[datetime] = Field(None, description="Окончание пробного периода")
    current_period_start: Optional[datetime] = Field(None, description="Начало текущего периода")
    current_period_end: Optional[datetime] = Field(None, description="Конец текущего периода")
    monthly_fee: int = Field(1500, ge=0, description="Ежемесячная плата, CVE")


class DriverWithUser(Driver):
    """Водитель вместе с данными пользователя (контакты)."""

    user: Optional[User] = None


class UserWithDriver(User):
    """Пользователь вместе с профилем водителя и подпиской."""

    driver: Optional[Driver] = None
    subscription: Optional[Subscription] = None


class RegisterDTO(CamelModel):
    """DTO регистрации."""

    email: str
    password: str
    confirm_password: str
    name: str
    phone: Optional[str] = None
    role: UserRole = UserRole.PASSENGER
    license_plate: Optional[str] = None
    vehicle_model: Optional[str] = None

    @field_validator("email", "name", "password", "confirm_password", mode="before")
    @classmethod
    def not_none(cls, v: Optional[str]) -> str:
        """Пустые значения приводим к строке, проверка выполняется в сервисе."""
        return v or ""


class LoginDTO(CamelModel):
    """DTO входа."""

    email: str
    password: str


class AuthResult(CamelModel):
    """Результат входа или регистрации."""

    user: UserWithDriver
    token: str


class AuthIdentity(CamelModel):
    """Проверенная личность из токена."""

    user_id: str
    role: UserRole


class FavoriteDTO(CamelModel):
    """DTO добавления водителя в избранное."""

    driver_id: str
