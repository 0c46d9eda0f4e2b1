# src/core/billing/service.py
"""
Сервис подписок водителей.
Решает, может ли водитель принимать поездки, и управляет статусом подписки.
"""

from __future__ import annotations

import calendar
from datetime import datetime
from typing import Optional

from src.common.constants import AuditAction, SubscriptionStatus, TypeMsg
from src.common.exceptions import NotFoundError
from src.common.logger import log_info
from src.core.audit.service import AuditService
from src.core.users.models import Subscription, utc_now
from src.infra.store import BaseStore


def add_months(moment: datetime, months: int) -> datetime:
    """
    Сдвигает дату на N календарных месяцев.
    День месяца ограничивается длиной целевого месяца (31 янв + 1 = 28/29 фев).
    """
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class SubscriptionGate:
    """Проверка права водителя принимать поездки по статусу подписки."""

    PERMITTED_STATUSES = (SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE)

    @staticmethod
    def can_accept_rides(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
        """
        Разрешено при статусе trial или active.

        Дата окончания пробного периода не сравнивается с now:
        пробный период истекает только явной сменой статуса.

        Args:
            subscription: Снимок подписки (None, если подписки нет)
            now: Текущее время

        Returns:
            True, если водитель может принимать поездки
        """
        # Водитель без записи о подписке не допускается к поездкам
        if subscription is None:
            return False
        return subscription.status in SubscriptionGate.PERMITTED_STATUSES


class SubscriptionService:
    """
    Сервис подписок.

    Реализует:
    - Создание пробной подписки при регистрации водителя
    - Чтение подписки водителя
    - Явную смену статуса администратором
    """

    def __init__(
        self,
        store: BaseStore,
        audit: AuditService,
        trial_months: int = 1,
        monthly_fee: int = 1500,
    ) -> None:
        """
        Инициализация сервиса.

        Args:
            store: Хранилище
            audit: Журнал аудита
            trial_months: Длительность пробного периода, месяцев
            monthly_fee: Ежемесячная плата, CVE
        """
        self._store = store
        self._audit = audit
        self._trial_months = trial_months
        self._monthly_fee = monthly_fee

    async def create_trial(self, driver_id: str, now: Optional[datetime] = None) -> Subscription:
        """Создаёт пробную подписку на trial_months календарных месяцев."""
        now = now or utc_now()
        trial_ends_at = add_months(now, self._trial_months)

        subscription = await self._store.create_subscription(
            driver_id=driver_id,
            status=SubscriptionStatus.TRIAL,
            trial_ends_at=trial_ends_at,
            current_period_start=now,
            current_period_end=trial_ends_at,
            monthly_fee=self._monthly_fee,
        )
        await log_info(
            f"Пробная подписка водителя {driver_id} до {trial_ends_at.isoformat()}",
            type_msg=TypeMsg.DEBUG,
        )
        return subscription

    async def get_for_driver(self, driver_id: str) -> Optional[Subscription]:
        return await self._store.get_subscription_by_driver_id(driver_id)

    async def set_status(
        self,
        driver_id: str,
        status: SubscriptionStatus,
        admin_id: Optional[str] = None,
    ) -> Subscription:
        """
        Явно устанавливает статус подписки водителя.

        Raises:
            NotFoundError: Водитель или подписка не найдены
        """
        driver = await self._store.get_driver(driver_id)
        if driver is None:
            raise NotFoundError(f"Водитель {driver_id} не найден", message_key="DRIVER_NOT_FOUND")

        subscription = await self._store.get_subscription_by_driver_id(driver_id)
        if subscription is None:
            raise NotFoundError(
                f"Подписка водителя {driver_id} не найдена",
                message_key="SUBSCRIPTION_NOT_FOUND",
            )

        fields: dict = {"status": status}
        if status == SubscriptionStatus.ACTIVE and subscription.status != SubscriptionStatus.ACTIVE:
            now = utc_now()
            fields["current_period_start"] = now
            fields["current_period_end"] = add_months(now, 1)

        updated = await self._store.update_subscription(subscription.id, **fields)
        if updated is None:
            raise NotFoundError(
                f"Подписка водителя {driver_id} не найдена",
                message_key="SUBSCRIPTION_NOT_FOUND",
            )

        await self._audit.record(
            admin_id,
            AuditAction.ADMIN_SUBSCRIPTION_UPDATE,
            {"driverId": driver_id, "oldStatus": str(subscription.status), "newStatus": str(status)},
        )
        await log_info(f"Подписка водителя {driver_id}: {subscription.status} -> {status}")
        return updated
