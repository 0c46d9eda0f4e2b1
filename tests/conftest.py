# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-for-unit-tests-only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_DEMO_DATA", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from src.common.constants import SubscriptionStatus, UserRole  # noqa: E402
from src.config.loader import PricingSettings  # noqa: E402
from src.core.audit.service import AuditService  # noqa: E402
from src.core.auth.passwords import PasswordHasher  # noqa: E402
from src.core.auth.security import SecurityManager  # noqa: E402
from src.core.auth.tokens import TokenService  # noqa: E402
from src.core.billing.service import SubscriptionService  # noqa: E402
from src.core.notifications.service import NotificationService  # noqa: E402
from src.core.pricing.service import PriceCalculator  # noqa: E402
from src.core.rides.service import RideService  # noqa: E402
from src.core.users.models import AuthIdentity, Driver, User  # noqa: E402
from src.core.users.service import UserService  # noqa: E402
from src.infra.store import MemoryStore  # noqa: E402


TEST_JWT_SECRET = "test-jwt-secret-key-for-unit-tests-only"
TEST_PASSWORD = "Mindelo2024!"


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture(scope="session")
def lang_dict_path(project_root: Path) -> Path:
    """Путь к файлу локализации."""
    return project_root / "config" / "lang_dict.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "mindelo_ride_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "DEFAULT_LANGUAGE": "pt",
        "API_HOST": "127.0.0.1",
        "API_PORT": 5050,
        "LOG_LEVEL": "DEBUG",
        "LOG_TO_FILE": False,
        "LOG_FORMAT": "json",
        "TOKEN_TTL_DAYS": 3,
        "RATE_LIMIT_MAX_ATTEMPTS": 3,
        "CURRENCY": "CVE",
        "BASE_FARE": 150,
        "FIXED_ROUTES": [
            {"origin": "Centro", "destination": "Aeroporto", "price": 1000},
        ],
        "TRIAL_MONTHS": 2,
        "MONTHLY_FEE": 2000,
    }


@pytest.fixture
def mock_lang_dict() -> dict[str, dict[str, str]]:
    """Мок словаря локализации."""
    return {
        "RIDE_NOT_FOUND": {"pt": "Corrida não encontrada", "en": "Ride not found"},
        "GREETING": {"pt": "Olá, {name}!", "en": "Hello, {name}!"},
        "ONLY_PT": {"pt": "Só português"},
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Временный config.json."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config), encoding="utf-8")
    return config_file


@pytest.fixture
def temp_lang_dict_file(tmp_path: Path, mock_lang_dict: dict[str, dict[str, str]]) -> Path:
    """Временный lang_dict.json."""
    lang_file = tmp_path / "lang_dict.json"
    lang_file.write_text(json.dumps(mock_lang_dict, ensure_ascii=False), encoding="utf-8")
    return lang_file


# =============================================================================
# ФИКСТУРЫ СЕРВИСОВ
# =============================================================================

@pytest.fixture
def store() -> MemoryStore:
    """Пустое хранилище в памяти."""
    return MemoryStore()


@pytest.fixture
def audit(store: MemoryStore) -> AuditService:
    return AuditService(store)


@pytest.fixture
def subscriptions(store: MemoryStore, audit: AuditService) -> SubscriptionService:
    return SubscriptionService(store, audit, trial_months=1, monthly_fee=1500)


@pytest.fixture
def pricing() -> PriceCalculator:
    return PriceCalculator.from_settings(PricingSettings())


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(secret=TEST_JWT_SECRET)


@pytest.fixture
def mock_channel() -> MagicMock:
    """Мок канала доставки (ConnectionManager)."""
    channel = MagicMock()
    channel.send_personal = AsyncMock(return_value=True)
    channel.broadcast = AsyncMock(return_value=1)
    return channel


@pytest.fixture
def notifications(mock_channel: MagicMock) -> NotificationService:
    return NotificationService(mock_channel)


@pytest.fixture
def ride_service(
    store: MemoryStore,
    pricing: PriceCalculator,
    notifications: NotificationService,
    audit: AuditService,
) -> RideService:
    return RideService(store=store, pricing=pricing, notifications=notifications, audit=audit)


@pytest.fixture
def user_service(
    store: MemoryStore,
    hasher: PasswordHasher,
    tokens: TokenService,
    subscriptions: SubscriptionService,
    audit: AuditService,
) -> UserService:
    return UserService(
        store=store,
        hasher=hasher,
        tokens=tokens,
        security=SecurityManager(max_attempts=5, window_seconds=900),
        subscriptions=subscriptions,
        audit=audit,
    )


# =============================================================================
# ТЕСТОВЫЕ ДАННЫЕ
# =============================================================================

class Seeder:
    """Создаёт пользователей напрямую в хранилище."""

    def __init__(self, store: MemoryStore, hasher: PasswordHasher, subscriptions: SubscriptionService) -> None:
        self.store = store
        self.hasher = hasher
        self.subscriptions = subscriptions
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    async def passenger(self, phone: Optional[str] = "+238 555-1111") -> User:
        n = self._next()
        return await self.store.create_user(
            email=f"passenger{n}@email.cv",
            password_hash=await self.hasher.hash(TEST_PASSWORD),
            name=f"Passageiro {n}",
            phone=phone,
            role=UserRole.PASSENGER,
        )

    async def admin(self) -> User:
        n = self._next()
        return await self.store.create_user(
            email=f"admin{n}@mindeloride.cv",
            password_hash=await self.hasher.hash(TEST_PASSWORD),
            name=f"Admin {n}",
            role=UserRole.ADMIN,
        )

    async def driver(
        self,
        status: Optional[SubscriptionStatus] = SubscriptionStatus.TRIAL,
    ) -> tuple[User, Driver]:
        """Водитель с подпиской в заданном статусе (None: без подписки)."""
        n = self._next()
        user = await self.store.create_user(
            email=f"driver{n}@email.cv",
            password_hash=await self.hasher.hash(TEST_PASSWORD),
            name=f"Motorista {n}",
            phone=f"+238 555-20{n:02d}",
            role=UserRole.DRIVER,
        )
        driver = await self.store.create_driver(
            user_id=user.id,
            license_plate=f"CV-{n:02d}-AB-123",
            vehicle_model="Toyota Corolla",
        )
        if status is not None:
            subscription = await self.subscriptions.create_trial(driver.id)
            if status != SubscriptionStatus.TRIAL:
                await self.store.update_subscription(subscription.id, status=status)
        return user, driver


@pytest.fixture
def seeder(store: MemoryStore, hasher: PasswordHasher, subscriptions: SubscriptionService) -> Seeder:
    return Seeder(store, hasher, subscriptions)


def identity_of(user: User) -> AuthIdentity:
    return AuthIdentity(user_id=user.id, role=user.role)


@pytest.fixture
def as_identity():
    """Преобразует пользователя в проверенную личность."""
    return identity_of
