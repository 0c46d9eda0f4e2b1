# tests/core/test_admin_service.py
"""
Тесты для сервиса администратора.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from src.common.constants import SubscriptionStatus, UserRole
from src.common.exceptions import ForbiddenError, NotFoundError
from src.core.admin.service import AdminService
from src.core.users.models import AuthIdentity, utc_now


@pytest.fixture
def admin_service(store, subscriptions, audit) -> AdminService:
    return AdminService(store=store, subscriptions=subscriptions, audit=audit)


async def _admin_identity(seeder) -> AuthIdentity:
    admin = await seeder.admin()
    return AuthIdentity(user_id=admin.id, role=UserRole.ADMIN)


class TestStats:
    """Тесты сводной статистики."""

    @pytest.mark.asyncio
    async def test_empty_store(self, admin_service, seeder) -> None:
        identity = await _admin_identity(seeder)

        stats = await admin_service.get_stats(identity)

        assert stats.total_users == 1
        assert stats.total_rides == 0
        assert stats.total_revenue == 0
        assert stats.completion_rate == 0.0

    @pytest.mark.asyncio
    async def test_revenue_and_completion_rate(self, admin_service, ride_service, seeder) -> None:
        identity = await _admin_identity(seeder)
        passenger = await seeder.passenger()
        driver_user, _ = await seeder.driver(status=SubscriptionStatus.ACTIVE)

        for final_price in (None, 50000):
            ride = await ride_service.request_ride(passenger.id, "Centro", "Laginha")
            await ride_service.accept_ride(ride.id, driver_user.id)
            await ride_service.start_ride(ride.id, driver_user.id)
            await ride_service.complete_ride(ride.id, driver_user.id, final_price=final_price)
        await ride_service.request_ride(passenger.id, "Centro", "Aeroporto")

        stats = await admin_service.get_stats(identity)

        assert stats.total_users == 3
        assert stats.total_drivers == 1
        assert stats.total_rides == 3
        assert stats.active_subscriptions == 1
        assert stats.today_rides == 3
        assert stats.total_revenue == 30000 + 50000
        assert stats.completion_rate == 66.7

    @pytest.mark.asyncio
    async def test_today_rides_by_date(self, admin_service, ride_service, seeder) -> None:
        identity = await _admin_identity(seeder)
        passenger = await seeder.passenger()
        await ride_service.request_ride(passenger.id, "Centro", "Laginha")

        stats = await admin_service.get_stats(identity, now=utc_now() + timedelta(days=2))

        assert stats.total_rides == 1
        assert stats.today_rides == 0

    @pytest.mark.asyncio
    async def test_admins_only(self, admin_service, seeder, as_identity) -> None:
        passenger = await seeder.passenger()

        with pytest.raises(ForbiddenError) as exc_info:
            await admin_service.get_stats(as_identity(passenger))

        assert exc_info.value.message_key == "ADMINS_ONLY"


class TestManagement:
    """Тесты управления водителями и подписками."""

    @pytest.mark.asyncio
    async def test_list_users_and_rides(self, admin_service, ride_service, seeder) -> None:
        identity = await _admin_identity(seeder)
        passenger = await seeder.passenger()
        _, driver = await seeder.driver()
        ride = await ride_service.request_ride(passenger.id, "Centro", "Laginha")

        users = await admin_service.list_users(identity)
        rides = await admin_service.list_rides(identity)

        assert len(users) == 3
        driver_entry = next(u for u in users if u.role == UserRole.DRIVER)
        assert driver_entry.driver.id == driver.id
        assert driver_entry.subscription.status == SubscriptionStatus.TRIAL
        assert [r.id for r in rides] == [ride.id]

    @pytest.mark.asyncio
    async def test_verify_driver(self, admin_service, seeder, store) -> None:
        identity = await _admin_identity(seeder)
        _, driver = await seeder.driver()

        updated = await admin_service.verify_driver(identity, driver.id, True)

        assert updated.is_verified is True
        assert (await store.get_driver(driver.id)).is_verified is True

        logs = await admin_service.get_audit_logs(identity, limit=1)
        assert logs[0].action == "admin_driver_verify"
        assert logs[0].details == {"driverId": driver.id, "verified": True}

    @pytest.mark.asyncio
    async def test_verify_unknown_driver(self, admin_service, seeder) -> None:
        identity = await _admin_identity(seeder)

        with pytest.raises(NotFoundError):
            await admin_service.verify_driver(identity, "missing", True)

    @pytest.mark.asyncio
    async def test_set_subscription_status(self, admin_service, seeder) -> None:
        identity = await _admin_identity(seeder)
        _, driver = await seeder.driver()

        updated = await admin_service.set_subscription_status(identity, driver.id, SubscriptionStatus.EXPIRED)

        assert updated.status == SubscriptionStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_driver_cannot_manage(self, admin_service, seeder, as_identity) -> None:
        driver_user, driver = await seeder.driver()

        with pytest.raises(ForbiddenError):
            await admin_service.verify_driver(as_identity(driver_user), driver.id, True)
        with pytest.raises(ForbiddenError):
            await admin_service.get_audit_logs(as_identity(driver_user))
