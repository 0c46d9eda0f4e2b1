# src/infra/seed.py
"""
Демонстрационные данные.
Создаёт администратора, пассажира и проверенного водителя с пробной подпиской.
"""

from __future__ import annotations

import secrets

from src.common.constants import UserRole, TypeMsg
from src.common.logger import log_info, log_warning
from src.config.loader import SeedSettings
from src.core.auth.passwords import PasswordHasher
from src.core.billing.service import SubscriptionService
from src.infra.store import BaseStore


DEMO_PASSENGER_EMAIL = "joao@email.cv"
DEMO_DRIVER_EMAIL = "manuel@email.cv"
DEMO_LICENSE_PLATE = "CV-01-AB-123"


async def _password(configured: str, account: str) -> str:
    if configured:
        return configured
    generated = secrets.token_urlsafe(12)
    await log_warning(f"Пароль демо-аккаунта {account} не задан, сгенерирован: {generated}")
    return generated


async def seed_demo_data(
    store: BaseStore,
    hasher: PasswordHasher,
    subscriptions: SubscriptionService,
    seed: SeedSettings,
) -> bool:
    """
    Заполняет хранилище демо-данными.
    Повторный вызов ничего не меняет.

    Returns:
        True, если данные были созданы
    """
    if await store.get_user_by_email(seed.SEED_ADMIN_EMAIL) is not None:
        await log_info("Демо-данные уже загружены", type_msg=TypeMsg.DEBUG)
        return False

    admin_password = await _password(seed.SEED_ADMIN_PASSWORD, seed.SEED_ADMIN_EMAIL)
    user_password = await _password(seed.SEED_USER_PASSWORD, "демо-пользователей")

    await store.create_user(
        user_id="admin-001",
        email=seed.SEED_ADMIN_EMAIL,
        password_hash=await hasher.hash(admin_password),
        name="Admin Sistema",
        phone="+238 555-0000",
        role=UserRole.ADMIN,
    )

    await store.create_user(
        user_id="passenger-001",
        email=DEMO_PASSENGER_EMAIL,
        password_hash=await hasher.hash(user_password),
        name="João Silva",
        phone="+238 555-1111",
        role=UserRole.PASSENGER,
    )

    driver_user = await store.create_user(
        user_id="driver-user-001",
        email=DEMO_DRIVER_EMAIL,
        password_hash=await hasher.hash(user_password),
        name="Manuel Santos",
        phone="+238 555-2222",
        role=UserRole.DRIVER,
    )
    driver = await store.create_driver(
        driver_id="driver-001",
        user_id=driver_user.id,
        license_plate=DEMO_LICENSE_PLATE,
        vehicle_model="Toyota Corolla",
        is_verified=True,
        rating=4.8,
        total_rides=150,
    )
    await subscriptions.create_trial(driver.id)

    await log_info("Демо-данные загружены: администратор, пассажир, водитель")
    return True
