# src/infra/store.py
"""
Хранилище сущностей.
Единственный источник истины для пользователей, водителей, подписок,
поездок, избранного и журнала аудита.

BaseStore описывает контракт, MemoryStore: реализация в памяти процесса.
Все изменения выполняются под одной блокировкой (single writer), сущности
хранятся как неизменяемые снимки и заменяются целиком при обновлении.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional
from uuid import uuid4

from src.common.constants import RideStatus, SubscriptionStatus, UserRole, TypeMsg
from src.common.logger import log_info
from src.core.audit.models import AuditLogEntry
from src.core.rides.models import Ride, RideWithDetails
from src.core.users.models import (
    Driver,
    DriverWithUser,
    Subscription,
    User,
    UserWithDriver,
    normalize_email,
    normalize_license_plate,
    utc_now,
)


def _fields_of(model: Any, model_cls: type) -> dict[str, Any]:
    """Значения полей модели (включая исключённые из сериализации)."""
    return {name: getattr(model, name) for name in model_cls.model_fields}


class BaseStore(ABC):
    """Контракт хранилища. Отсутствие сущности: None, не исключение."""

    # --- Пользователи ---

    @abstractmethod
    async def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        phone: Optional[str] = None,
        role: UserRole = UserRole.PASSENGER,
        user_id: Optional[str] = None,
    ) -> User: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def update_user(self, user_id: str, **fields: Any) -> Optional[User]: ...

    @abstractmethod
    async def get_user_with_driver(self, user_id: str) -> Optional[UserWithDriver]: ...

    @abstractmethod
    async def get_all_users(self) -> list[UserWithDriver]: ...

    # --- Водители ---

    @abstractmethod
    async def create_driver(
        self,
        *,
        user_id: str,
        license_plate: str,
        vehicle_model: Optional[str] = None,
        is_verified: bool = False,
        rating: Optional[float] = None,
        total_rides: int = 0,
        driver_id: Optional[str] = None,
    ) -> Driver: ...

    @abstractmethod
    async def get_driver(self, driver_id: str) -> Optional[Driver]: ...

    @abstractmethod
    async def get_driver_by_user_id(self, user_id: str) -> Optional[Driver]: ...

    @abstractmethod
    async def get_driver_by_license_plate(self, license_plate: str) -> Optional[Driver]: ...

    @abstractmethod
    async def update_driver(self, driver_id: str, **fields: Any) -> Optional[Driver]: ...

    @abstractmethod
    async def increment_driver_rides(self, driver_id: str) -> Optional[Driver]: ...

    # --- Подписки ---

    @abstractmethod
    async def create_subscription(
        self,
        *,
        driver_id: str,
        status: SubscriptionStatus = SubscriptionStatus.TRIAL,
        trial_ends_at: Optional[datetime] = None,
        current_period_start: Optional[datetime] = None,
        current_period_end: Optional[datetime] = None,
        monthly_fee: int = 1500,
    ) -> Subscription: ...

    @abstractmethod
    async def get_subscription(self, subscription_id: str) -> Optional[Subscription]: ...

    @abstractmethod
    async def get_subscription_by_driver_id(self, driver_id: str) -> Optional[Subscription]: ...

    @abstractmethod
    async def update_subscription(self, subscription_id: str, **fields: Any) -> Optional[Subscription]: ...

    # --- Поездки ---

    @abstractmethod
    async def create_ride(
        self,
        *,
        passenger_id: str,
        origin: str,
        destination: str,
        passenger_phone: str,
        estimated_price: int,
        notes: Optional[str] = None,
    ) -> Ride: ...

    @abstractmethod
    async def get_ride(self, ride_id: str) -> Optional[Ride]: ...

    @abstractmethod
    async def get_ride_details(self, ride_id: str) -> Optional[RideWithDetails]: ...

    @abstractmethod
    async def update_ride(self, ride_id: str, **fields: Any) -> Optional[Ride]: ...

    @abstractmethod
    async def update_ride_if_status(
        self,
        ride_id: str,
        expected_status: RideStatus,
        **fields: Any,
    ) -> Optional[Ride]: ...

    @abstractmethod
    async def get_rides_by_passenger(self, passenger_id: str) -> list[RideWithDetails]: ...

    @abstractmethod
    async def get_rides_by_driver(self, driver_id: str) -> list[RideWithDetails]: ...

    @abstractmethod
    async def get_rides_by_status(self, status: RideStatus) -> list[RideWithDetails]: ...

    @abstractmethod
    async def get_all_rides(self) -> list[RideWithDetails]: ...

    # --- Избранное ---

    @abstractmethod
    async def add_favorite(self, passenger_id: str, driver_id: str) -> None: ...

    @abstractmethod
    async def remove_favorite(self, passenger_id: str, driver_id: str) -> None: ...

    @abstractmethod
    async def get_favorite_driver_ids(self, passenger_id: str) -> list[str]: ...

    # --- Аудит и статистика ---

    @abstractmethod
    async def append_audit_log(
        self,
        user_id: Optional[str],
        action: str,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditLogEntry: ...

    @abstractmethod
    async def get_audit_logs(self, limit: int = 50) -> list[AuditLogEntry]: ...

    @abstractmethod
    async def get_system_stats(self) -> dict[str, int]: ...


class MemoryStore(BaseStore):
    """
    Хранилище в памяти процесса.

    Реализует:
    - CRUD по первичному ключу для всех сущностей
    - Поиск по вторичным атрибутам (email, номер авто, владельцы)
    - Атомарный compare-and-set статуса поездки
    - Композитные чтения с разрешением ссылок на момент чтения
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._drivers: dict[str, Driver] = {}
        self._subscriptions: dict[str, Subscription] = {}
        self._rides: dict[str, Ride] = {}
        # passenger_id -> driver_id (порядок добавления сохраняется)
        self._favorites: dict[str, dict[str, None]] = {}
        self._audit_logs: list[AuditLogEntry] = []

        # Единственный писатель: все изменения под этой блокировкой
        self._lock = asyncio.Lock()

    @staticmethod
    def _generate_id() -> str:
        """Генерирует уникальный ID."""
        return uuid4().hex

    # =========================================================================
    # ПОЛЬЗОВАТЕЛИ
    # =========================================================================

    async def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        phone: Optional[str] = None,
        role: UserRole = UserRole.PASSENGER,
        user_id: Optional[str] = None,
    ) -> User:
        async with self._lock:
            user = User(
                id=user_id or self._generate_id(),
                email=normalize_email(email),
                password_hash=password_hash,
                name=name,
                phone=phone,
                role=role,
                created_at=utc_now(),
            )
            self._users[user.id] = user
            return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        normalized = normalize_email(email)
        return next((u for u in self._users.values() if u.email == normalized), None)

    async def update_user(self, user_id: str, **fields: Any) -> Optional[User]:
        # Роль неизменна после создания
        fields.pop("role", None)
        fields.pop("id", None)
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            updated = user.model_copy(update=fields)
            self._users[user_id] = updated
            return updated

    async def get_user_with_driver(self, user_id: str) -> Optional[UserWithDriver]:
        user = self._users.get(user_id)
        if user is None:
            return None

        driver = None
        subscription = None
        if user.role == UserRole.DRIVER:
            driver = self._find_driver_by_user_id(user_id)
            if driver is not None:
                subscription = self._find_subscription_by_driver_id(driver.id)

        return UserWithDriver(
            **_fields_of(user, User),
            driver=driver,
            subscription=subscription,
        )

    async def get_all_users(self) -> list[UserWithDriver]:
        results = []
        for user_id in list(self._users):
            user = await self.get_user_with_driver(user_id)
            if user is not None:
                results.append(user)
        return results

    # =========================================================================
    # ВОДИТЕЛИ
    # =========================================================================

    def _find_driver_by_user_id(self, user_id: str) -> Optional[Driver]:
        return next((d for d in self._drivers.values() if d.user_id == user_id), None)

    async def create_driver(
        self,
        *,
        user_id: str,
        license_plate: str,
        vehicle_model: Optional[str] = None,
        is_verified: bool = False,
        rating: Optional[float] = None,
        total_rides: int = 0,
        driver_id: Optional[str] = None,
    ) -> Driver:
        async with self._lock:
            driver = Driver(
                id=driver_id or self._generate_id(),
                user_id=user_id,
                license_plate=normalize_license_plate(license_plate),
                vehicle_model=vehicle_model,
                is_verified=is_verified,
                rating=rating,
                total_rides=total_rides,
            )
            self._drivers[driver.id] = driver
            return driver

    async def get_driver(self, driver_id: str) -> Optional[Driver]:
        return self._drivers.get(driver_id)

    async def get_driver_by_user_id(self, user_id: str) -> Optional[Driver]:
        return self._find_driver_by_user_id(user_id)

    async def get_driver_by_license_plate(self, license_plate: str) -> Optional[Driver]:
        normalized = normalize_license_plate(license_plate)
        return next(
            (d for d in self._drivers.values() if normalize_license_plate(d.license_plate) == normalized),
            None,
        )

    async def update_driver(self, driver_id: str, **fields: Any) -> Optional[Driver]:
        fields.pop("id", None)
        async with self._lock:
            driver = self._drivers.get(driver_id)
            if driver is None:
                return None
            updated = driver.model_copy(update=fields)
            self._drivers[driver_id] = updated
            return updated

    async def increment_driver_rides(self, driver_id: str) -> Optional[Driver]:
        async with self._lock:
            driver = self._drivers.get(driver_id)
            if driver is None:
                return None
            updated = driver.model_copy(update={"total_rides": driver.total_rides + 1})
            self._drivers[driver_id] = updated
            return updated

    async def _driver_with_user(self, driver_id: str) -> Optional[DriverWithUser]:
        driver = self._drivers.get(driver_id)
        if driver is None:
            return None
        return DriverWithUser(
            **_fields_of(driver, Driver),
            user=self._users.get(driver.user_id),
        )

    # =========================================================================
    # ПОДПИСКИ
    # =========================================================================

    def _find_subscription_by_driver_id(self, driver_id: str) -> Optional[Subscription]:
        return next((s for s in self._subscriptions.values() if s.driver_id == driver_id), None)

    async def create_subscription(
        self,
        *,
        driver_id: str,
        status: SubscriptionStatus = SubscriptionStatus.TRIAL,
        trial_ends_at: Optional[datetime] = None,
        current_period_start: Optional[datetime] = None,
        current_period_end: Optional[datetime] = None,
        monthly_fee: int = 1500,
    ) -> Subscription:
        async with self._lock:
            subscription = Subscription(
                id=self._generate_id(),
                driver_id=driver_id,
                status=status,
                trial_ends_at=trial_ends_at,
                current_period_start=current_period_start,
                current_period_end=current_period_end,
                monthly_fee=monthly_fee,
            )
            self._subscriptions[subscription.id] = subscription
            return subscription

    async def get_subscription(self, subscription_id: str) -> Optional[Subscription]:
        return self._subscriptions.get(subscription_id)

    async def get_subscription_by_driver_id(self, driver_id: str) -> Optional[Subscription]:
        return self._find_subscription_by_driver_id(driver_id)

    async def update_subscription(self, subscription_id: str, **fields: Any) -> Optional[Subscription]:
        fields.pop("id", None)
        async with self._lock:
            subscription = self._subscriptions.get(subscription_id)
            if subscription is None:
                return None
            updated = subscription.model_copy(update=fields)
            self._subscriptions[subscription_id] = updated
            return updated

    # =========================================================================
    # ПОЕЗДКИ
    # =========================================================================

    async def create_ride(
        self,
        *,
        passenger_id: str,
        origin: str,
        destination: str,
        passenger_phone: str,
        estimated_price: int,
        notes: Optional[str] = None,
    ) -> Ride:
        async with self._lock:
            ride = Ride(
                id=self._generate_id(),
                passenger_id=passenger_id,
                origin=origin,
                destination=destination,
                passenger_phone=passenger_phone,
                notes=notes,
                estimated_price=estimated_price,
                status=RideStatus.PENDING,
                requested_at=utc_now(),
            )
            self._rides[ride.id] = ride
            return ride

    async def get_ride(self, ride_id: str) -> Optional[Ride]:
        return self._rides.get(ride_id)

    async def get_ride_details(self, ride_id: str) -> Optional[RideWithDetails]:
        ride = self._rides.get(ride_id)
        if ride is None:
            return None

        driver = None
        if ride.driver_id:
            driver = await self._driver_with_user(ride.driver_id)

        return RideWithDetails(
            **_fields_of(ride, Ride),
            passenger=self._users.get(ride.passenger_id),
            driver=driver,
        )

    async def update_ride(self, ride_id: str, **fields: Any) -> Optional[Ride]:
        fields.pop("id", None)
        async with self._lock:
            ride = self._rides.get(ride_id)
            if ride is None:
                return None
            updated = ride.model_copy(update=fields)
            self._rides[ride_id] = updated
            return updated

    async def update_ride_if_status(
        self,
        ride_id: str,
        expected_status: RideStatus,
        **fields: Any,
    ) -> Optional[Ride]:
        """
        Атомарно применяет изменения, только если статус поездки равен ожидаемому.

        Returns:
            Обновлённая поездка, либо None, если поездки нет или статус другой
        """
        fields.pop("id", None)
        async with self._lock:
            ride = self._rides.get(ride_id)
            if ride is None or ride.status != expected_status:
                return None
            updated = ride.model_copy(update=fields)
            self._rides[ride_id] = updated
            return updated

    async def _details_newest_first(self, rides: list[Ride]) -> list[RideWithDetails]:
        ordered = sorted(rides, key=lambda r: r.requested_at, reverse=True)
        results = []
        for ride in ordered:
            details = await self.get_ride_details(ride.id)
            if details is not None:
                results.append(details)
        return results

    async def get_rides_by_passenger(self, passenger_id: str) -> list[RideWithDetails]:
        rides = [r for r in self._rides.values() if r.passenger_id == passenger_id]
        return await self._details_newest_first(rides)

    async def get_rides_by_driver(self, driver_id: str) -> list[RideWithDetails]:
        rides = [r for r in self._rides.values() if r.driver_id == driver_id]
        return await self._details_newest_first(rides)

    async def get_rides_by_status(self, status: RideStatus) -> list[RideWithDetails]:
        rides = [r for r in self._rides.values() if r.status == status]
        return await self._details_newest_first(rides)

    async def get_all_rides(self) -> list[RideWithDetails]:
        return await self._details_newest_first(list(self._rides.values()))

    # =========================================================================
    # ИЗБРАННОЕ
    # =========================================================================

    async def add_favorite(self, passenger_id: str, driver_id: str) -> None:
        async with self._lock:
            self._favorites.setdefault(passenger_id, {})[driver_id] = None

    async def remove_favorite(self, passenger_id: str, driver_id: str) -> None:
        async with self._lock:
            favorites = self._favorites.get(passenger_id)
            if favorites is not None:
                favorites.pop(driver_id, None)

    async def get_favorite_driver_ids(self, passenger_id: str) -> list[str]:
        return list(self._favorites.get(passenger_id, {}))

    # =========================================================================
    # АУДИТ И СТАТИСТИКА
    # =========================================================================

    async def append_audit_log(
        self,
        user_id: Optional[str],
        action: str,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditLogEntry:
        async with self._lock:
            entry = AuditLogEntry(
                id=self._generate_id(),
                user_id=user_id,
                action=action,
                timestamp=utc_now(),
                details=details or {},
            )
            self._audit_logs.append(entry)
            return entry

    async def get_audit_logs(self, limit: int = 50) -> list[AuditLogEntry]:
        if limit <= 0:
            return []
        return list(reversed(self._audit_logs[-limit:]))

    async def get_system_stats(self) -> dict[str, int]:
        active_subscriptions = sum(
            1 for s in self._subscriptions.values() if s.status == SubscriptionStatus.ACTIVE
        )
        return {
            "total_users": len(self._users),
            "total_drivers": len(self._drivers),
            "total_rides": len(self._rides),
            "active_subscriptions": active_subscriptions,
        }

    async def clear(self) -> None:
        """Очищает все данные (для тестов и перезапуска демо)."""
        async with self._lock:
            self._users.clear()
            self._drivers.clear()
            self._subscriptions.clear()
            self._rides.clear()
            self._favorites.clear()
            self._audit_logs.clear()
        await log_info("Хранилище очищено", type_msg=TypeMsg.DEBUG)
