# src/services/api/dependencies.py
"""
Dependency Injection для HTTP API.
Сервисы собираются один раз при создании приложения и хранятся в app.state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from src.common.exceptions import UnauthorizedError
from src.config.loader import Settings
from src.core.admin.service import AdminService
from src.core.audit.service import AuditService
from src.core.auth.passwords import PasswordHasher
from src.core.auth.security import SecurityManager
from src.core.auth.tokens import TokenService
from src.core.billing.service import SubscriptionService
from src.core.notifications.service import NotificationService
from src.core.pricing.service import PriceCalculator
from src.core.rides.service import RideService
from src.core.users.models import AuthIdentity
from src.core.users.service import UserService
from src.infra.store import BaseStore
from src.services.realtime_ws.connection_manager import ConnectionManager


@dataclass
class ServiceContainer:
    """Все сервисы приложения, собранные вокруг одного хранилища."""
    store: BaseStore
    connection_manager: ConnectionManager
    hasher: PasswordHasher
    audit: AuditService
    subscriptions: SubscriptionService
    pricing: PriceCalculator
    users: UserService
    rides: RideService
    admin: AdminService


def build_container(store: BaseStore, config: Settings) -> ServiceContainer:
    """Собирает сервисы из настроек."""
    manager = ConnectionManager()
    hasher = PasswordHasher(rounds=config.auth.BCRYPT_ROUNDS)
    audit = AuditService(store)
    subscriptions = SubscriptionService(
        store,
        audit,
        trial_months=config.subscription.TRIAL_MONTHS,
        monthly_fee=config.subscription.MONTHLY_FEE,
    )
    pricing = PriceCalculator.from_settings(config.pricing)

    users = UserService(
        store=store,
        hasher=hasher,
        tokens=TokenService(
            secret=config.auth.JWT_SECRET,
            algorithm=config.auth.JWT_ALGORITHM,
            ttl_days=config.auth.TOKEN_TTL_DAYS,
        ),
        security=SecurityManager(
            max_attempts=config.security.RATE_LIMIT_MAX_ATTEMPTS,
            window_seconds=config.security.RATE_LIMIT_WINDOW_SECONDS,
            max_input_length=config.security.MAX_INPUT_LENGTH,
        ),
        subscriptions=subscriptions,
        audit=audit,
    )
    rides = RideService(
        store=store,
        pricing=pricing,
        notifications=NotificationService(manager),
        audit=audit,
    )
    admin = AdminService(store, subscriptions, audit)

    return ServiceContainer(
        store=store,
        connection_manager=manager,
        hasher=hasher,
        audit=audit,
        subscriptions=subscriptions,
        pricing=pricing,
        users=users,
        rides=rides,
        admin=admin,
    )


def get_user_service(request: Request) -> UserService:
    return request.app.state.container.users


def get_ride_service(request: Request) -> RideService:
    return request.app.state.container.rides


def get_admin_service(request: Request) -> AdminService:
    return request.app.state.container.admin


def get_price_calculator(request: Request) -> PriceCalculator:
    return request.app.state.container.pricing


def get_client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def get_identity(
    users: Annotated[UserService, Depends(get_user_service)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> AuthIdentity:
    """
    Проверяет заголовок Authorization: Bearer <token>.

    Raises:
        UnauthorizedError: Нет токена или токен недействителен
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthorizedError("Токен не передан", message_key="TOKEN_REQUIRED")

    identity = await users.verify_token(authorization[len("Bearer "):])
    if identity is None:
        raise UnauthorizedError("Токен недействителен или истёк", message_key="TOKEN_INVALID")
    return identity


CurrentIdentity = Annotated[AuthIdentity, Depends(get_identity)]
