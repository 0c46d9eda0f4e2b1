# src/core/admin/models.py
"""
Модели администрирования.
"""

from __future__ import annotations

from pydantic import Field

from src.common.constants import SubscriptionStatus
from src.shared.models.common import CamelModel


class SystemStats(CamelModel):
    """Сводная статистика системы."""

    total_users: int = 0
    total_drivers: int = 0
    total_rides: int = 0
    active_subscriptions: int = 0
    today_rides: int = 0
    total_revenue: int = Field(0, description="Выручка завершённых поездок, сотые")
    completion_rate: float = Field(0.0, description="Доля завершённых поездок, %")


class VerifyDriverDTO(CamelModel):
    verified: bool


class SubscriptionStatusDTO(CamelModel):
    status: SubscriptionStatus


