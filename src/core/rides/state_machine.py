# src/core/rides/state_machine.py
from __future__ import annotations

from src.common.constants import RideStatus, UserRole


class RideStateMachine:
    """Таблица допустимых переходов статусов поездки."""

    ALLOWED_TRANSITIONS: dict[RideStatus, list[RideStatus]] = {
        RideStatus.PENDING: [RideStatus.ACCEPTED, RideStatus.CANCELLED],
        RideStatus.ACCEPTED: [RideStatus.STARTED],
        RideStatus.STARTED: [RideStatus.COMPLETED],
        RideStatus.COMPLETED: [],
        RideStatus.CANCELLED: [],
    }

    # Кто может перевести поездку в статус
    ALLOWED_ROLES: dict[RideStatus, tuple[UserRole, ...]] = {
        RideStatus.PENDING: (UserRole.PASSENGER,),
        RideStatus.ACCEPTED: (UserRole.DRIVER,),
        RideStatus.STARTED: (UserRole.DRIVER,),
        RideStatus.COMPLETED: (UserRole.DRIVER,),
        RideStatus.CANCELLED: (UserRole.PASSENGER, UserRole.ADMIN),
    }

    @staticmethod
    def can_transition(current_status: str, new_status: str) -> bool:
        try:
            curr = RideStatus(current_status)
            new = RideStatus(new_status)
            return new in RideStateMachine.ALLOWED_TRANSITIONS.get(curr, [])
        except ValueError:
            return False

    @staticmethod
    def role_allowed(role: str, new_status: str) -> bool:
        try:
            return UserRole(role) in RideStateMachine.ALLOWED_ROLES.get(RideStatus(new_status), ())
        except ValueError:
            return False
