# src/core/billing/__init__.py
"""
Домен биллинга.
Подписки водителей и проверка права принимать поездки.
"""

from src.core.billing.service import SubscriptionGate, SubscriptionService, add_months

__all__ = [
    "SubscriptionGate",
    "SubscriptionService",
    "add_months",
]
