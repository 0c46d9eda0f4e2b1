# src/core/audit/models.py
"""
Модель записи журнала аудита.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from src.core.users.models import utc_now
from src.shared.models.common import SnapshotModel


class AuditLogEntry(SnapshotModel):
    """Запись журнала аудита (только добавление)."""

    id: str = Field(..., description="ID записи")
    user_id: Optional[str] = Field(None, description="ID пользователя-инициатора")
    action: str = Field(..., description="Тег действия")
    timestamp: datetime = Field(default_factory=utc_now, description="Время")
    details: dict[str, Any] = Field(default_factory=dict, description="Произвольные данные")
