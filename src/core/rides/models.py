# src/core/rides/models.py
"""
Модели данных поездок.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from src.common.constants import RideStatus
from src.core.users.models import User, DriverWithUser, utc_now
from src.shared.models.common import CamelModel, SnapshotModel


class Ride(SnapshotModel):
    """Модель поездки."""

    id: str = Field(..., description="ID поездки")
    passenger_id: str = Field(..., description="ID пассажира")
    driver_id: Optional[str] = Field(None, description="ID водителя (после принятия)")

    origin: str = Field(..., description="Откуда")
    destination: str = Field(..., description="Куда")
    passenger_phone: str = Field(..., description="Телефон пассажира")
    notes: Optional[str] = Field(None, description="Комментарий пассажира")

    # Суммы в сотых долях валюты
    estimated_price: int = Field(..., ge=0, description="Расчётная стоимость")
    final_price: Optional[int] = Field(None, ge=0, description="Итоговая стоимость")
    distance: Optional[float] = Field(None, ge=0.0, description="Расстояние, км")

    status: RideStatus = Field(RideStatus.PENDING, description="Статус поездки")

    requested_at: datetime = Field(default_factory=utc_now, description="Время заказа")
    accepted_at: Optional[datetime] = Field(None, description="Время принятия")
    started_at: Optional[datetime] = Field(None, description="Время начала")
    completed_at: Optional[datetime] = Field(None, description="Время завершения")
    cancelled_at: Optional[datetime] = Field(None, description="Время отмены")

    @property
    def price(self) -> int:
        """Итоговая стоимость, если есть, иначе расчётная."""
        return self.final_price if self.final_price is not None else self.estimated_price

    @property
    def latest_timestamp(self) -> datetime:
        """Самая поздняя из установленных временных меток."""
        stamps = [
            self.requested_at,
            self.accepted_at,
            self.started_at,
            self.completed_at,
            self.cancelled_at,
        ]
        return max(stamp for stamp in stamps if stamp is not None)


class RideWithDetails(Ride):
    """Поездка с данными пассажира и водителя на момент чтения."""

    passenger: Optional[User] = None
    driver: Optional[DriverWithUser] = None


class RideCreateDTO(CamelModel):
    """DTO заказа поездки."""

    origin: str = Field(..., description="Откуда")
    destination: str = Field(..., description="Куда")
    passenger_phone: Optional[str] = Field(None, description="Телефон (если нет в профиле)")
    notes: Optional[str] = Field(None, description="Комментарий")


class RideCompleteDTO(CamelModel):
    """DTO завершения поездки."""

    final_price: Optional[int] = Field(None, ge=0, description="Итоговая стоимость, сотые")
    distance: Optional[float] = Field(None, ge=0.0, description="Расстояние, км")


class PriceRequestDTO(CamelModel):
    """DTO расчёта стоимости."""

    origin: Optional[str] = None
    destination: Optional[str] = None


class PriceQuote(CamelModel):
    """Результат расчёта стоимости."""

    price: int
    currency: str
