# src/core/admin/service.py
"""
Сервис администратора.
Все операции доступны только пользователям с ролью admin.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.common.constants import AuditAction, RideStatus, SubscriptionStatus, UserRole
from src.common.exceptions import ForbiddenError, NotFoundError
from src.common.logger import log_info
from src.core.admin.models import SystemStats
from src.core.audit.models import AuditLogEntry
from src.core.audit.service import AuditService
from src.core.billing.service import SubscriptionService
from src.core.rides.models import RideWithDetails
from src.core.users.models import AuthIdentity, Driver, Subscription, UserWithDriver, utc_now
from src.infra.store import BaseStore


class AdminService:
    """
    Сервис администратора.

    Реализует:
    - Сводную статистику (поездки за сегодня, выручка, доля завершённых)
    - Списки пользователей и поездок
    - Верификацию водителей и смену статуса подписки
    - Чтение журнала аудита
    """

    def __init__(
        self,
        store: BaseStore,
        subscriptions: SubscriptionService,
        audit: AuditService,
    ) -> None:
        self._store = store
        self._subscriptions = subscriptions
        self._audit = audit

    @staticmethod
    def _ensure_admin(identity: AuthIdentity) -> None:
        if identity.role != UserRole.ADMIN:
            raise ForbiddenError("Доступ только для администратора", message_key="ADMINS_ONLY")

    async def get_stats(self, identity: AuthIdentity, now: Optional[datetime] = None) -> SystemStats:
        """
        Сводная статистика.

        Выручка считается по завершённым поездкам (итоговая стоимость,
        если указана, иначе расчётная). Доля завершённых округляется до 0.1%.
        """
        self._ensure_admin(identity)
        today = (now or utc_now()).date()

        totals = await self._store.get_system_stats()
        rides = await self._store.get_all_rides()

        completed = [r for r in rides if r.status == RideStatus.COMPLETED]
        today_rides = sum(1 for r in rides if r.requested_at.date() == today)
        revenue = sum(r.price for r in completed)
        completion_rate = round(len(completed) / len(rides) * 100, 1) if rides else 0.0

        return SystemStats(
            **totals,
            today_rides=today_rides,
            total_revenue=revenue,
            completion_rate=completion_rate,
        )

    async def list_users(self, identity: AuthIdentity) -> list[UserWithDriver]:
        self._ensure_admin(identity)
        return await self._store.get_all_users()

    async def list_rides(self, identity: AuthIdentity) -> list[RideWithDetails]:
        self._ensure_admin(identity)
        return await self._store.get_all_rides()

    async def verify_driver(self, identity: AuthIdentity, driver_id: str, verified: bool) -> Driver:
        """Устанавливает флаг проверки водителя."""
        self._ensure_admin(identity)

        driver = await self._store.update_driver(driver_id, is_verified=verified)
        if driver is None:
            raise NotFoundError(f"Водитель {driver_id} не найден", message_key="DRIVER_NOT_FOUND")

        await self._audit.record(
            identity.user_id,
            AuditAction.ADMIN_DRIVER_VERIFY,
            {"driverId": driver_id, "verified": verified},
        )
        await log_info(f"Водитель {driver_id}: проверен={verified}")
        return driver

    async def set_subscription_status(
        self,
        identity: AuthIdentity,
        driver_id: str,
        status: SubscriptionStatus,
    ) -> Subscription:
        self._ensure_admin(identity)
        return await self._subscriptions.set_status(driver_id, status, admin_id=identity.user_id)

    async def get_audit_logs(self, identity: AuthIdentity, limit: int = 50) -> list[AuditLogEntry]:
        self._ensure_admin(identity)
        return await self._audit.get_recent(limit)
