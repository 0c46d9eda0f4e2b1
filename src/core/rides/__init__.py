# src/core/rides/__init__.py
"""
Домен поездок: модели и таблица переходов статусов.
Сервис импортируется напрямую из src.core.rides.service.
"""

from src.core.rides.models import Ride, RideWithDetails
from src.core.rides.state_machine import RideStateMachine

__all__ = [
    "Ride",
    "RideWithDetails",
    "RideStateMachine",
]
