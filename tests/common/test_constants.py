# tests/common/test_constants.py
"""
Тесты для модуля констант.
"""

import pytest

from src.common.constants import (
    AuditAction,
    MessageType,
    RideStatus,
    SubscriptionStatus,
    TypeMsg,
    UserRole,
)


class TestTypeMsg:
    """Тесты для enum TypeMsg."""

    def test_type_msg_values(self) -> None:
        """Проверяет значения типов сообщений."""
        assert TypeMsg.DEBUG.value == "debug"
        assert TypeMsg.INFO.value == "info"
        assert TypeMsg.WARNING.value == "warning"
        assert TypeMsg.ERROR.value == "error"
        assert TypeMsg.CRITICAL.value == "critical"

    def test_type_msg_is_str_enum(self) -> None:
        assert isinstance(TypeMsg.DEBUG, str)
        assert TypeMsg.INFO == "info"


class TestUserRole:
    """Тесты для enum UserRole."""

    def test_values(self) -> None:
        assert {role.value for role in UserRole} == {"passenger", "driver", "admin"}

    def test_str_returns_value(self) -> None:
        assert str(UserRole.DRIVER) == "driver"
        assert f"{UserRole.ADMIN}" == "admin"

    def test_from_string(self) -> None:
        assert UserRole("passenger") is UserRole.PASSENGER
        with pytest.raises(ValueError):
            UserRole("operator")


class TestRideStatus:
    """Тесты для enum RideStatus."""

    def test_values(self) -> None:
        assert [status.value for status in RideStatus] == [
            "pending", "accepted", "started", "completed", "cancelled",
        ]

    def test_compares_with_plain_string(self) -> None:
        assert RideStatus.PENDING == "pending"
        assert str(RideStatus.COMPLETED) == "completed"


class TestSubscriptionStatus:
    """Тесты для enum SubscriptionStatus."""

    @pytest.mark.parametrize("status,value", [
        (SubscriptionStatus.TRIAL, "trial"),
        (SubscriptionStatus.ACTIVE, "active"),
        (SubscriptionStatus.EXPIRED, "expired"),
        (SubscriptionStatus.CANCELLED, "cancelled"),
    ])
    def test_values(self, status: SubscriptionStatus, value: str) -> None:
        assert status.value == value
        assert str(status) == value


class TestTags:
    """Теги аудита и типы WebSocket сообщений."""

    def test_audit_actions_are_unique(self) -> None:
        values = [v for k, v in vars(AuditAction).items() if k.isupper()]
        assert len(values) == len(set(values))
        assert AuditAction.LOGIN_FAILED == "login_failed"

    def test_ride_events_match_message_types(self) -> None:
        """Типы уведомлений о поездке совпадают с тегами аудита."""
        assert MessageType.RIDE_ACCEPTED == AuditAction.RIDE_ACCEPTED
        assert MessageType.RIDE_STARTED == AuditAction.RIDE_STARTED
        assert MessageType.RIDE_COMPLETED == AuditAction.RIDE_COMPLETED
        assert MessageType.NEW_RIDE == "new_ride"
