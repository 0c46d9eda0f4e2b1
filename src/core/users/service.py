# src/core/users/service.py
"""
Сервис для работы с пользователями.
Регистрация, вход, проверка токенов и избранные водители.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import AuditAction, UserRole, TypeMsg
from src.common.exceptions import ForbiddenError, NotFoundError, RateLimitedError, ValidationError
from src.common.logger import log_info, log_warning
from src.core.audit.service import AuditService
from src.core.auth.passwords import PasswordHasher
from src.core.auth.security import SecurityManager
from src.core.auth.tokens import TokenService
from src.core.billing.service import SubscriptionService
from src.core.users.models import (
    AuthIdentity,
    AuthResult,
    DriverWithUser,
    LoginDTO,
    RegisterDTO,
    UserWithDriver,
    normalize_email,
)
from src.infra.store import BaseStore


class UserService:
    """
    Сервис пользователей.

    Реализует:
    - Регистрацию пассажиров и водителей (с пробной подпиской)
    - Вход по email и паролю с ограничением попыток
    - Проверку токена доступа
    - Избранных водителей пассажира
    """

    def __init__(
        self,
        store: BaseStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        security: SecurityManager,
        subscriptions: SubscriptionService,
        audit: AuditService,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            store: Хранилище
            hasher: Хеширование паролей
            tokens: Выпуск и проверка JWT
            security: Ограничение попыток и валидация ввода
            subscriptions: Сервис подписок
            audit: Журнал аудита
        """
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._security = security
        self._subscriptions = subscriptions
        self._audit = audit

    # =========================================================================
    # РЕГИСТРАЦИЯ И ВХОД
    # =========================================================================

    async def register(self, dto: RegisterDTO, client_ip: str = "unknown") -> AuthResult:
        """
        Регистрирует пользователя.

        Raises:
            RateLimitedError: Превышен лимит попыток с адреса
            ValidationError: Некорректные данные, занятый email или номер авто
        """
        rate_key = f"register:{client_ip}"
        if not self._security.check_rate_limit(rate_key):
            await log_warning(f"Лимит попыток регистрации для {client_ip}")
            raise RateLimitedError("Слишком много попыток регистрации")

        sanitize = self._security.sanitize_input
        email = normalize_email(sanitize(dto.email))
        name = sanitize(dto.name)
        phone = sanitize(dto.phone) or None
        license_plate = sanitize(dto.license_plate) if dto.license_plate else ""
        vehicle_model = sanitize(dto.vehicle_model) if dto.vehicle_model else None

        self._raise_if_invalid(self._security.validate_email(email).message_key)
        self._raise_if_invalid(self._security.validate_password_strength(dto.password).message_key)

        if dto.password != dto.confirm_password:
            raise ValidationError("Пароли не совпадают", message_key="PASSWORDS_DO_NOT_MATCH")
        if not name:
            raise ValidationError("Имя обязательно", message_key="NAME_REQUIRED")
        if dto.role == UserRole.ADMIN:
            raise ValidationError("Регистрация администратора запрещена", message_key="INVALID_ROLE")

        if await self._store.get_user_by_email(email) is not None:
            await self._audit.record(
                None,
                AuditAction.REGISTER_FAILED_EMAIL_EXISTS,
                {"email": email, "ip": client_ip},
            )
            raise ValidationError(f"Email {email} уже зарегистрирован", message_key="EMAIL_EXISTS")

        if dto.role == UserRole.DRIVER:
            if not license_plate:
                raise ValidationError("Номер авто обязателен", message_key="LICENSE_PLATE_REQUIRED")
            if await self._store.get_driver_by_license_plate(license_plate) is not None:
                raise ValidationError(
                    f"Номер {license_plate} уже зарегистрирован",
                    message_key="LICENSE_PLATE_EXISTS",
                )

        user = await self._store.create_user(
            email=email,
            password_hash=await self._hasher.hash(dto.password),
            name=name,
            phone=phone,
            role=dto.role,
        )

        if dto.role == UserRole.DRIVER:
            driver = await self._store.create_driver(
                user_id=user.id,
                license_plate=license_plate,
                vehicle_model=vehicle_model,
            )
            await self._subscriptions.create_trial(driver.id)

        self._security.reset_rate_limit(rate_key)
        await self._audit.record(user.id, AuditAction.REGISTER, {"role": str(user.role), "ip": client_ip})
        await log_info(f"Зарегистрирован пользователь {user.email} ({user.role})")

        return await self._auth_result(user.id)

    async def login(self, dto: LoginDTO, client_ip: str = "unknown") -> Optional[AuthResult]:
        """
        Вход по email и паролю.

        Returns:
            Пользователь и токен, либо None при неверных учётных данных

        Raises:
            RateLimitedError: Превышен лимит попыток
            ValidationError: Некорректный email
        """
        email = normalize_email(self._security.sanitize_input(dto.email))
        rate_key = f"login:{client_ip}:{email}"
        if not self._security.check_rate_limit(rate_key):
            await log_warning(f"Лимит попыток входа для {email}")
            raise RateLimitedError("Слишком много попыток входа")

        self._raise_if_invalid(self._security.validate_email(email).message_key)

        user = await self._store.get_user_by_email(email)
        if user is None or not await self._hasher.verify(dto.password, user.password_hash):
            await self._audit.record(None, AuditAction.LOGIN_FAILED, {"email": email, "ip": client_ip})
            await log_info(f"Неудачный вход для {email}", type_msg=TypeMsg.WARNING)
            return None

        self._security.reset_rate_limit(rate_key)
        await self._audit.record(user.id, AuditAction.LOGIN, {"ip": client_ip})
        await log_info(f"Вход выполнен: {user.email} ({user.role})")

        return await self._auth_result(user.id)

    async def verify_token(self, token: Optional[str]) -> Optional[AuthIdentity]:
        """
        Проверяет токен доступа.

        Returns:
            Личность пользователя, либо None для пустого, повреждённого,
            просроченного токена, удалённого пользователя или смены роли
        """
        payload = self._tokens.decode(token)
        if payload is None:
            return None

        user = await self._store.get_user(payload["userId"])
        if user is None or str(user.role) != payload["role"]:
            return None

        return AuthIdentity(user_id=user.id, role=user.role)

    async def get_user(self, user_id: str) -> UserWithDriver:
        """Пользователь с профилем водителя и подпиской."""
        user = await self._store.get_user_with_driver(user_id)
        if user is None:
            raise NotFoundError(f"Пользователь {user_id} не найден", message_key="USER_NOT_FOUND")
        return user

    async def _auth_result(self, user_id: str) -> AuthResult:
        user = await self.get_user(user_id)
        return AuthResult(user=user, token=self._tokens.issue(user.id, user.role))

    @staticmethod
    def _raise_if_invalid(message_key: Optional[str]) -> None:
        if message_key is not None:
            raise ValidationError(message_key, message_key=message_key)

    # =========================================================================
    # ИЗБРАННОЕ
    # =========================================================================

    @staticmethod
    def _ensure_passenger(identity: AuthIdentity) -> None:
        if identity.role != UserRole.PASSENGER:
            raise ForbiddenError("Только пассажиры работают с избранным", message_key="PASSENGERS_ONLY")

    async def add_favorite(self, identity: AuthIdentity, driver_id: str) -> None:
        """Добавляет водителя в избранное (повторное добавление ничего не меняет)."""
        self._ensure_passenger(identity)
        if await self._store.get_driver(driver_id) is None:
            raise NotFoundError(f"Водитель {driver_id} не найден", message_key="DRIVER_NOT_FOUND")

        await self._store.add_favorite(identity.user_id, driver_id)
        await self._audit.record(identity.user_id, AuditAction.DRIVER_FAVORITED, {"driverId": driver_id})

    async def remove_favorite(self, identity: AuthIdentity, driver_id: str) -> None:
        self._ensure_passenger(identity)
        await self._store.remove_favorite(identity.user_id, driver_id)
        await self._audit.record(identity.user_id, AuditAction.DRIVER_UNFAVORITED, {"driverId": driver_id})

    async def list_favorites(self, identity: AuthIdentity) -> list[DriverWithUser]:
        self._ensure_passenger(identity)
        favorites = []
        for driver_id in await self._store.get_favorite_driver_ids(identity.user_id):
            driver = await self._store.get_driver(driver_id)
            if driver is None:
                continue
            user = await self._store.get_user(driver.user_id)
            favorites.append(DriverWithUser(
                **{name: getattr(driver, name) for name in type(driver).model_fields},
                user=user,
            ))
        return favorites
