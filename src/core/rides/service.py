# src/core/rides/service.py
"""
Сервис жизненного цикла поездок.
Проверяет роль, владение, подписку и текущий статус, затем атомарно
применяет переход через хранилище и рассылает уведомления.

Порядок проверок в каждой операции:
поездка существует -> роль -> владение/подписка -> статус.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.common.constants import AuditAction, RideStatus, UserRole
from src.common.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from src.common.logger import log_info
from src.core.audit.service import AuditService
from src.core.billing.service import SubscriptionGate
from src.core.notifications.service import NotificationService
from src.core.pricing.service import PriceCalculator
from src.core.rides.models import Ride, RideWithDetails
from src.core.rides.state_machine import RideStateMachine
from src.core.users.models import AuthIdentity, Driver, User, utc_now
from src.infra.store import BaseStore


# Временная метка, которая устанавливается при переходе в статус
TIMESTAMP_FIELDS: dict[RideStatus, str] = {
    RideStatus.ACCEPTED: "accepted_at",
    RideStatus.STARTED: "started_at",
    RideStatus.COMPLETED: "completed_at",
    RideStatus.CANCELLED: "cancelled_at",
}


def _same_place(origin: str, destination: str) -> bool:
    """Сравнение адресов без учёта регистра и лишних пробелов."""
    def key(value: str) -> str:
        return " ".join(value.split()).casefold()
    return key(origin) == key(destination)


class RideService:
    """
    Сервис поездок.

    Реализует:
    - Заказ поездки пассажиром
    - Принятие, начало и завершение поездки водителем
    - Отмену ожидающей поездки пассажиром или администратором
    - Чтение поездок с учётом роли
    """

    def __init__(
        self,
        store: BaseStore,
        pricing: PriceCalculator,
        notifications: NotificationService,
        audit: AuditService,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            store: Хранилище
            pricing: Калькулятор стоимости
            notifications: Рассылка уведомлений
            audit: Журнал аудита
        """
        self._store = store
        self._pricing = pricing
        self._notifications = notifications
        self._audit = audit

    # =========================================================================
    # ВСПОМОГАТЕЛЬНЫЕ МЕТОДЫ
    # =========================================================================

    async def _require_ride(self, ride_id: str) -> Ride:
        ride = await self._store.get_ride(ride_id)
        if ride is None:
            raise NotFoundError(f"Поездка {ride_id} не найдена", message_key="RIDE_NOT_FOUND")
        return ride

    async def _require_user(self, user_id: str) -> User:
        user = await self._store.get_user(user_id)
        if user is None:
            raise NotFoundError(f"Пользователь {user_id} не найден", message_key="USER_NOT_FOUND")
        return user

    async def _require_actor(self, user_id: str, new_status: RideStatus) -> User:
        """Пользователь, чья роль допускает переход в new_status."""
        user = await self._require_user(user_id)
        if not RideStateMachine.role_allowed(user.role, new_status):
            raise ForbiddenError(
                f"Роль {user.role} не может перевести поездку в {new_status}",
                message_key="ROLE_NOT_ALLOWED",
            )
        return user

    async def _require_driver(self, user_id: str, new_status: RideStatus) -> Driver:
        await self._require_actor(user_id, new_status)
        driver = await self._store.get_driver_by_user_id(user_id)
        if driver is None:
            raise ForbiddenError(f"У пользователя {user_id} нет профиля водителя", message_key="DRIVERS_ONLY")
        return driver

    @staticmethod
    def _ensure_assigned(ride: Ride, driver: Driver) -> None:
        """Начать и завершить поездку может только принявший её водитель."""
        if ride.driver_id is not None and ride.driver_id != driver.id:
            raise ForbiddenError(
                f"Поездка {ride.id} назначена другому водителю",
                message_key="NOT_RIDE_DRIVER",
            )

    async def _transition(self, ride: Ride, new_status: RideStatus, **fields) -> Ride:
        """
        Проверяет статус и атомарно применяет переход.

        Метка времени не раньше уже установленных, поэтому
        requested_at <= accepted_at <= started_at <= completed_at.

        Raises:
            InvalidTransitionError: Статус не допускает переход (в том числе проигранная гонка)
        """
        if not RideStateMachine.can_transition(ride.status, new_status):
            raise InvalidTransitionError(
                f"Переход {ride.status} -> {new_status} недопустим для поездки {ride.id}",
                details={"currentStatus": str(ride.status)},
            )

        now = max(utc_now(), ride.latest_timestamp)
        updated = await self._store.update_ride_if_status(
            ride.id,
            ride.status,
            status=new_status,
            **{TIMESTAMP_FIELDS[new_status]: now},
            **fields,
        )
        if updated is None:
            current = await self._store.get_ride(ride.id)
            raise InvalidTransitionError(
                f"Поездка {ride.id} уже изменена: {current.status if current else 'нет'}",
                details={"currentStatus": str(current.status) if current else None},
            )
        return updated

    async def _details(self, ride_id: str) -> RideWithDetails:
        details = await self._store.get_ride_details(ride_id)
        if details is None:
            raise NotFoundError(f"Поездка {ride_id} не найдена", message_key="RIDE_NOT_FOUND")
        return details

    # =========================================================================
    # ПЕРЕХОДЫ
    # =========================================================================

    async def request_ride(
        self,
        passenger_id: str,
        origin: str,
        destination: str,
        phone: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> RideWithDetails:
        """
        Создаёт поездку в статусе pending и оповещает водителей.

        Args:
            passenger_id: ID пассажира
            origin: Откуда
            destination: Куда
            phone: Телефон (если не указан, берётся из профиля)
            notes: Комментарий

        Raises:
            ForbiddenError: Заказывает не пассажир
            ValidationError: Пустые или совпадающие адреса, нет телефона
        """
        passenger = await self._require_actor(passenger_id, RideStatus.PENDING)

        origin = (origin or "").strip()
        destination = (destination or "").strip()
        if not origin or not destination:
            raise ValidationError("Укажите адреса отправления и назначения", message_key="ADDRESS_REQUIRED")
        if _same_place(origin, destination):
            raise ValidationError("Адреса отправления и назначения совпадают", message_key="SAME_ADDRESS")

        # Телефон из профиля важнее переданного в заказе
        contact_phone = passenger.phone or (phone or "").strip()
        if not contact_phone:
            raise ValidationError("Не указан телефон пассажира", message_key="PHONE_REQUIRED")

        ride = await self._store.create_ride(
            passenger_id=passenger.id,
            origin=origin,
            destination=destination,
            passenger_phone=contact_phone,
            estimated_price=self._pricing.price(origin, destination),
            notes=(notes or "").strip() or None,
        )

        await self._audit.record(passenger.id, AuditAction.RIDE_REQUESTED, {"rideId": ride.id})
        await log_info(f"Поездка {ride.id} заказана: {origin} -> {destination}, {ride.estimated_price}")

        details = await self._details(ride.id)
        await self._notifications.ride_requested(details)
        return details

    async def accept_ride(self, ride_id: str, driver_user_id: str) -> RideWithDetails:
        """
        Водитель принимает ожидающую поездку.

        Из нескольких одновременных попыток успешна ровно одна,
        остальные получают InvalidTransitionError.

        Raises:
            NotFoundError: Поездка не найдена
            ForbiddenError: Не водитель или подписка не позволяет принимать поездки
            InvalidTransitionError: Поездка не в статусе pending
        """
        ride = await self._require_ride(ride_id)
        driver = await self._require_driver(driver_user_id, RideStatus.ACCEPTED)

        subscription = await self._store.get_subscription_by_driver_id(driver.id)
        if not SubscriptionGate.can_accept_rides(subscription, utc_now()):
            raise ForbiddenError(
                f"Подписка водителя {driver.id} не активна",
                message_key="SUBSCRIPTION_INACTIVE",
            )

        updated = await self._transition(ride, RideStatus.ACCEPTED, driver_id=driver.id)

        await self._audit.record(driver_user_id, AuditAction.RIDE_ACCEPTED, {"rideId": ride_id, "driverId": driver.id})
        await log_info(f"Поездка {ride_id} принята водителем {driver.id}")

        details = await self._details(updated.id)
        await self._notifications.ride_accepted(details)
        return details

    async def start_ride(self, ride_id: str, driver_user_id: str) -> RideWithDetails:
        """Принявший водитель начинает поездку (accepted -> started)."""
        ride = await self._require_ride(ride_id)
        driver = await self._require_driver(driver_user_id, RideStatus.STARTED)
        self._ensure_assigned(ride, driver)

        updated = await self._transition(ride, RideStatus.STARTED)

        await self._audit.record(driver_user_id, AuditAction.RIDE_STARTED, {"rideId": ride_id})
        await log_info(f"Поездка {ride_id} начата")

        details = await self._details(updated.id)
        await self._notifications.ride_started(details)
        return details

    async def complete_ride(
        self,
        ride_id: str,
        driver_user_id: str,
        final_price: Optional[int] = None,
        distance: Optional[float] = None,
    ) -> RideWithDetails:
        """
        Принявший водитель завершает поездку (started -> completed).
        Счётчик поездок водителя увеличивается ровно на 1.
        """
        ride = await self._require_ride(ride_id)
        driver = await self._require_driver(driver_user_id, RideStatus.COMPLETED)
        self._ensure_assigned(ride, driver)

        if final_price is not None and final_price < 0:
            raise ValidationError("Итоговая стоимость не может быть отрицательной", message_key="INVALID_DATA")
        if distance is not None and distance < 0:
            raise ValidationError("Расстояние не может быть отрицательным", message_key="INVALID_DATA")

        extra: dict = {}
        if final_price is not None:
            extra["final_price"] = final_price
        if distance is not None:
            extra["distance"] = distance

        updated = await self._transition(ride, RideStatus.COMPLETED, **extra)
        await self._store.increment_driver_rides(driver.id)

        await self._audit.record(
            driver_user_id,
            AuditAction.RIDE_COMPLETED,
            {"rideId": ride_id, "finalPrice": updated.final_price, "distance": updated.distance},
        )
        await log_info(f"Поездка {ride_id} завершена, стоимость {updated.price}")

        details = await self._details(updated.id)
        await self._notifications.ride_completed(details)
        return details

    async def cancel_ride(self, ride_id: str, actor_id: str) -> RideWithDetails:
        """
        Отмена ожидающей поездки пассажиром-владельцем или администратором.

        Raises:
            InvalidTransitionError: Поездка уже принята, начата или закрыта
        """
        ride = await self._require_ride(ride_id)
        actor = await self._require_actor(actor_id, RideStatus.CANCELLED)
        if actor.role == UserRole.PASSENGER and ride.passenger_id != actor.id:
            raise ForbiddenError(
                f"Пассажир {actor.id} не владеет поездкой {ride_id}",
                message_key="NOT_RIDE_OWNER",
            )

        updated = await self._transition(ride, RideStatus.CANCELLED)

        await self._audit.record(actor.id, AuditAction.RIDE_CANCELLED, {"rideId": ride_id, "role": str(actor.role)})
        await log_info(f"Поездка {ride_id} отменена ({actor.role})")

        return await self._details(updated.id)

    # =========================================================================
    # ЧТЕНИЕ
    # =========================================================================

    async def get_ride(self, ride_id: str, identity: Optional[AuthIdentity] = None) -> RideWithDetails:
        """
        Поездка с деталями.

        Без identity возвращается без проверки доступа. Иначе:
        администратор видит всё, пассажир свои поездки,
        водитель назначенные ему и ожидающие.
        """
        details = await self._details(ride_id)
        if identity is None or identity.role == UserRole.ADMIN:
            return details

        if identity.role == UserRole.PASSENGER and details.passenger_id == identity.user_id:
            return details

        if identity.role == UserRole.DRIVER:
            if details.status == RideStatus.PENDING:
                return details
            driver = await self._store.get_driver_by_user_id(identity.user_id)
            if driver is not None and details.driver_id == driver.id:
                return details

        raise ForbiddenError(f"Нет доступа к поездке {ride_id}", message_key="FORBIDDEN")

    async def list_rides_for_user(self, identity: AuthIdentity) -> list[RideWithDetails]:
        """Пассажир: свои поездки; водитель: назначенные. Администратор использует админ-API."""
        if identity.role == UserRole.PASSENGER:
            return await self._store.get_rides_by_passenger(identity.user_id)

        if identity.role == UserRole.DRIVER:
            driver = await self._store.get_driver_by_user_id(identity.user_id)
            if driver is not None:
                return await self._store.get_rides_by_driver(driver.id)

        raise ForbiddenError("Нет доступа к списку поездок", message_key="FORBIDDEN")

    async def list_pending_rides(self, identity: AuthIdentity) -> list[RideWithDetails]:
        """Ожидающие поездки (только для водителей)."""
        if identity.role != UserRole.DRIVER:
            raise ForbiddenError("Ожидающие поездки доступны только водителям", message_key="DRIVERS_ONLY")
        return await self._store.get_rides_by_status(RideStatus.PENDING)

