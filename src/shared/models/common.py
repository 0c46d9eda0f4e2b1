# src/shared/models/common.py
"""
Общие модели для API и доменного слоя.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Базовая модель с camelCase алиасами.
    Клиенты (дашборды) работают с camelCase, код со snake_case.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_client(self) -> dict[str, Any]:
        """Сериализует модель для отправки клиенту (JSON-совместимо, camelCase)."""
        return self.model_dump(mode="json", by_alias=True)


class SnapshotModel(CamelModel):
    """Неизменяемый снимок сущности из хранилища."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )


class HealthStatus(BaseModel):
    """Статус здоровья сервиса."""

    service: str
    status: str = "healthy"  # healthy, degraded, unhealthy
    version: str | None = None
    timestamp: str | None = None
    uptime_seconds: float | None = None
    dependencies: dict[str, str] = Field(default_factory=dict)
