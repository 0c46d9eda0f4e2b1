# tests/core/test_pricing_service.py
"""
Тесты калькулятора стоимости.
"""

from __future__ import annotations

import pytest

from src.config.loader import FixedRoute, PricingSettings
from src.core.pricing.service import PriceCalculator


class TestPriceCalculator:
    """Тесты для PriceCalculator."""

    @pytest.mark.parametrize("origin,destination,expected", [
        ("Centro", "Laginha", 30000),
        ("Laginha", "Centro", 30000),
        ("Centro", "Aeroporto", 120000),
        ("Ribeira Bote", "Laginha", 45000),
    ])
    def test_fixed_routes(self, pricing: PriceCalculator, origin: str, destination: str, expected: int) -> None:
        assert pricing.price(origin, destination) == expected

    def test_zone_names_are_normalized(self, pricing: PriceCalculator) -> None:
        assert pricing.price("  centro ", "LAGINHA") == 30000
        assert pricing.price("ribeira   bote", "laginha") == 45000

    def test_default_fare(self, pricing: PriceCalculator) -> None:
        # 100 + 3 км * 80
        assert pricing.major_price("Monte Sossego", "Fortim") == 340
        assert pricing.price("Monte Sossego", "Fortim") == 34000

    def test_deterministic(self, pricing: PriceCalculator) -> None:
        assert pricing.price("Centro", "Chã de Alecrim") == pricing.price("Centro", "Chã de Alecrim")

    def test_quote_in_major_units(self, pricing: PriceCalculator) -> None:
        quote = pricing.quote("Centro", "Laginha")

        assert quote.price == 300
        assert quote.currency == "CVE"
        assert quote.to_client() == {"price": 300, "currency": "CVE"}

    def test_custom_settings(self) -> None:
        calculator = PriceCalculator.from_settings(PricingSettings(
            CURRENCY="EUR",
            BASE_FARE=2,
            FARE_PER_KM=1,
            DEFAULT_DISTANCE_KM=5,
            FIXED_ROUTES=[FixedRoute(origin="A", destination="B", price=9)],
        ))

        assert calculator.currency == "EUR"
        assert calculator.price("b", "a") == 900
        assert calculator.price("A", "C") == 700

    def test_no_fixed_routes(self) -> None:
        calculator = PriceCalculator(base_fare=100, fare_per_km=80, default_distance_km=3)
        assert calculator.price("Centro", "Laginha") == 34000
