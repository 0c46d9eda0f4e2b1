# src/core/pricing/__init__.py
"""
Расчёт стоимости поездок.
"""

from src.core.pricing.service import PriceCalculator

__all__ = ["PriceCalculator"]
