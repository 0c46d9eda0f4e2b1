# tests/infra/test_store.py
"""
Тесты хранилища в памяти.
"""

from __future__ import annotations

import asyncio

import pytest
from pydantic import ValidationError as PydanticValidationError

from src.common.constants import RideStatus, SubscriptionStatus, UserRole
from src.infra.store import MemoryStore


async def _ride(store: MemoryStore, passenger_id: str = "p-1", origin: str = "Centro"):
    return await store.create_ride(
        passenger_id=passenger_id,
        origin=origin,
        destination="Laginha",
        passenger_phone="+238 555-1111",
        estimated_price=30000,
    )


class TestUsers:
    """Тесты пользователей."""

    @pytest.mark.asyncio
    async def test_create_and_lookup(self, store: MemoryStore) -> None:
        user = await store.create_user(email=" Joao@Email.CV ", password_hash="h", name="João")

        assert len(user.id) == 32
        assert user.email == "joao@email.cv"
        assert user.role == UserRole.PASSENGER
        assert await store.get_user(user.id) == user
        assert await store.get_user_by_email("JOAO@email.cv") == user
        assert await store.get_user("missing") is None

    @pytest.mark.asyncio
    async def test_update_keeps_role(self, store: MemoryStore) -> None:
        user = await store.create_user(email="a@b.cv", password_hash="h", name="A")

        updated = await store.update_user(user.id, name="B", role=UserRole.ADMIN)

        assert updated.name == "B"
        assert updated.role == UserRole.PASSENGER
        assert await store.update_user("missing", name="X") is None

    @pytest.mark.asyncio
    async def test_snapshots_are_immutable(self, store: MemoryStore) -> None:
        user = await store.create_user(email="a@b.cv", password_hash="h", name="A")

        with pytest.raises(PydanticValidationError):
            user.name = "B"

    @pytest.mark.asyncio
    async def test_user_with_driver(self, store: MemoryStore) -> None:
        user = await store.create_user(email="d@b.cv", password_hash="h", name="D", role=UserRole.DRIVER)
        driver = await store.create_driver(user_id=user.id, license_plate="cv-01-ab-123")
        subscription = await store.create_subscription(driver_id=driver.id)

        composite = await store.get_user_with_driver(user.id)

        assert composite.password_hash == "h"
        assert composite.driver == driver
        assert composite.subscription == subscription
        assert "passwordHash" not in composite.to_client()
        assert len(await store.get_all_users()) == 1


class TestDrivers:
    """Тесты водителей."""

    @pytest.mark.asyncio
    async def test_plate_normalized(self, store: MemoryStore) -> None:
        driver = await store.create_driver(user_id="u-1", license_plate=" cv-01-ab-123 ")

        assert driver.license_plate == "CV-01-AB-123"
        assert await store.get_driver_by_license_plate("Cv-01-Ab-123") == driver
        assert await store.get_driver_by_user_id("u-1") == driver

    @pytest.mark.asyncio
    async def test_increment_rides(self, store: MemoryStore) -> None:
        driver = await store.create_driver(user_id="u-1", license_plate="X", total_rides=150)

        await store.increment_driver_rides(driver.id)
        updated = await store.increment_driver_rides(driver.id)

        assert updated.total_rides == 152
        assert await store.increment_driver_rides("missing") is None

    @pytest.mark.asyncio
    async def test_subscription_by_driver(self, store: MemoryStore) -> None:
        subscription = await store.create_subscription(driver_id="drv-1")

        updated = await store.update_subscription(subscription.id, status=SubscriptionStatus.EXPIRED)

        assert updated.status == SubscriptionStatus.EXPIRED
        assert await store.get_subscription_by_driver_id("drv-1") == updated
        assert await store.get_subscription(subscription.id) == updated


class TestRides:
    """Тесты поездок."""

    @pytest.mark.asyncio
    async def test_create_pending(self, store: MemoryStore) -> None:
        ride = await _ride(store)

        assert ride.status == RideStatus.PENDING
        assert ride.driver_id is None
        assert ride.requested_at is not None

    @pytest.mark.asyncio
    async def test_update_if_status(self, store: MemoryStore) -> None:
        ride = await _ride(store)

        updated = await store.update_ride_if_status(ride.id, RideStatus.PENDING, status=RideStatus.ACCEPTED, driver_id="d-1")
        stale = await store.update_ride_if_status(ride.id, RideStatus.PENDING, status=RideStatus.ACCEPTED, driver_id="d-2")

        assert updated.driver_id == "d-1"
        assert stale is None
        assert (await store.get_ride(ride.id)).driver_id == "d-1"
        assert await store.update_ride_if_status("missing", RideStatus.PENDING, status=RideStatus.ACCEPTED) is None

    @pytest.mark.asyncio
    async def test_concurrent_compare_and_set(self, store: MemoryStore) -> None:
        ride = await _ride(store)

        results = await asyncio.gather(*[
            store.update_ride_if_status(ride.id, RideStatus.PENDING, status=RideStatus.ACCEPTED, driver_id=f"d-{i}")
            for i in range(10)
        ])

        assert sum(1 for r in results if r is not None) == 1

    @pytest.mark.asyncio
    async def test_details_resolve_references(self, store: MemoryStore) -> None:
        passenger = await store.create_user(email="p@b.cv", password_hash="h", name="P")
        driver_user = await store.create_user(email="d@b.cv", password_hash="h", name="D", role=UserRole.DRIVER)
        driver = await store.create_driver(user_id=driver_user.id, license_plate="X")
        ride = await _ride(store, passenger_id=passenger.id)
        await store.update_ride(ride.id, driver_id=driver.id, status=RideStatus.ACCEPTED)

        details = await store.get_ride_details(ride.id)

        assert details.passenger == passenger
        assert details.driver.id == driver.id
        assert details.driver.user == driver_user
        assert await store.get_ride_details("missing") is None

        # Изменения пользователя видны при следующем чтении
        await store.update_user(passenger.id, name="P2")
        assert (await store.get_ride_details(ride.id)).passenger.name == "P2"

    @pytest.mark.asyncio
    async def test_lists_newest_first(self, store: MemoryStore) -> None:
        first = await _ride(store, origin="Centro")
        await asyncio.sleep(0.001)
        second = await _ride(store, origin="Fortim")
        await asyncio.sleep(0.001)
        other = await _ride(store, passenger_id="p-2")
        await store.update_ride(first.id, status=RideStatus.ACCEPTED, driver_id="d-1")

        assert [r.id for r in await store.get_rides_by_passenger("p-1")] == [second.id, first.id]
        assert [r.id for r in await store.get_rides_by_driver("d-1")] == [first.id]
        assert [r.id for r in await store.get_rides_by_status(RideStatus.PENDING)] == [other.id, second.id]
        assert [r.id for r in await store.get_all_rides()] == [other.id, second.id, first.id]


class TestFavoritesAndAudit:
    """Тесты избранного, аудита и статистики."""

    @pytest.mark.asyncio
    async def test_favorites_set_semantics(self, store: MemoryStore) -> None:
        await store.add_favorite("p-1", "d-1")
        await store.add_favorite("p-1", "d-2")
        await store.add_favorite("p-1", "d-1")
        await store.remove_favorite("p-1", "d-3")
        await store.remove_favorite("p-9", "d-1")

        assert await store.get_favorite_driver_ids("p-1") == ["d-1", "d-2"]
        assert await store.get_favorite_driver_ids("p-2") == []

    @pytest.mark.asyncio
    async def test_audit_limit_and_order(self, store: MemoryStore) -> None:
        for i in range(3):
            await store.append_audit_log("u-1", f"action_{i}")

        assert [e.action for e in await store.get_audit_logs(2)] == ["action_2", "action_1"]
        assert len(await store.get_audit_logs(100)) == 3
        assert await store.get_audit_logs(0) == []

    @pytest.mark.asyncio
    async def test_system_stats(self, store: MemoryStore) -> None:
        user = await store.create_user(email="d@b.cv", password_hash="h", name="D", role=UserRole.DRIVER)
        driver = await store.create_driver(user_id=user.id, license_plate="X")
        await store.create_subscription(driver_id=driver.id, status=SubscriptionStatus.ACTIVE)
        await _ride(store)

        assert await store.get_system_stats() == {
            "total_users": 1,
            "total_drivers": 1,
            "total_rides": 1,
            "active_subscriptions": 1,
        }

    @pytest.mark.asyncio
    async def test_clear(self, store: MemoryStore) -> None:
        await store.create_user(email="a@b.cv", password_hash="h", name="A")
        await store.append_audit_log(None, "x")

        await store.clear()

        assert await store.get_all_users() == []
        assert await store.get_audit_logs() == []
