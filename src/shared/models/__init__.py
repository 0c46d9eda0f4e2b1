# src/shared/models/__init__.py
"""
Общие Pydantic-модели для API и доменного слоя.
"""

from src.shared.models.common import (
    CamelModel,
    SnapshotModel,
    HealthStatus,
)

__all__ = [
    "CamelModel",
    "SnapshotModel",
    "HealthStatus",
]
