# src/core/pricing/service.py
"""
Калькулятор стоимости поездок.
Фиксированные цены по зонам, для прочих маршрутов базовый тариф.
"""

from __future__ import annotations

from typing import Iterable, Optional

from src.config.loader import FixedRoute, PricingSettings
from src.core.rides.models import PriceQuote


def _zone_key(name: str) -> str:
    """Ключ зоны: без учёта регистра и лишних пробелов."""
    return " ".join(name.split()).casefold()


class PriceCalculator:
    """Детерминированный расчёт стоимости (без состояния)."""

    def __init__(
        self,
        currency: str = "CVE",
        base_fare: int = 100,
        fare_per_km: int = 80,
        default_distance_km: int = 3,
        minor_units_per_unit: int = 100,
        fixed_routes: Optional[Iterable[FixedRoute]] = None,
    ) -> None:
        self.currency = currency
        self._base_fare = base_fare
        self._fare_per_km = fare_per_km
        self._default_distance_km = default_distance_km
        self._minor_units = minor_units_per_unit

        # Маршрут действует в обе стороны
        self._fixed: dict[tuple[str, str], int] = {}
        for route in fixed_routes or ():
            a, b = _zone_key(route.origin), _zone_key(route.destination)
            self._fixed[(a, b)] = route.price
            self._fixed[(b, a)] = route.price

    @classmethod
    def from_settings(cls, pricing: PricingSettings) -> "PriceCalculator":
        return cls(
            currency=pricing.CURRENCY,
            base_fare=pricing.BASE_FARE,
            fare_per_km=pricing.FARE_PER_KM,
            default_distance_km=pricing.DEFAULT_DISTANCE_KM,
            minor_units_per_unit=pricing.MINOR_UNITS_PER_UNIT,
            fixed_routes=pricing.FIXED_ROUTES,
        )

    def major_price(self, origin: str, destination: str) -> int:
        """Стоимость в целых CVE."""
        fixed = self._fixed.get((_zone_key(origin), _zone_key(destination)))
        if fixed is not None:
            return fixed
        return self._base_fare + self._default_distance_km * self._fare_per_km

    def price(self, origin: str, destination: str) -> int:
        """
        Стоимость в сотых долях валюты.

        Example:
            >>> PriceCalculator.from_settings(PricingSettings()).price("Centro", "Laginha")
            30000
        """
        return self.major_price(origin, destination) * self._minor_units

    def quote(self, origin: str, destination: str) -> PriceQuote:
        """Стоимость для публичного калькулятора (целые CVE и валюта)."""
        return PriceQuote(price=self.major_price(origin, destination), currency=self.currency)
