# src/services/api/routes/__init__.py
"""
Роутеры HTTP API.
"""

from src.services.api.routes.admin import router as admin_router
from src.services.api.routes.auth import router as auth_router
from src.services.api.routes.favorites import router as favorites_router
from src.services.api.routes.pricing import router as pricing_router
from src.services.api.routes.rides import router as rides_router

__all__ = [
    "admin_router",
    "auth_router",
    "favorites_router",
    "pricing_router",
    "rides_router",
]
