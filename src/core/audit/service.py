# src/core/audit/service.py
"""
Сервис журнала аудита.
Запись в журнал никогда не прерывает бизнес-операцию.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info
from src.core.audit.models import AuditLogEntry
from src.infra.store import BaseStore


class AuditService:
    """Запись и чтение журнала аудита."""

    def __init__(self, store: BaseStore) -> None:
        self._store = store

    async def record(
        self,
        user_id: Optional[str],
        action: str,
        details: Optional[dict[str, Any]] = None,
    ) -> Optional[AuditLogEntry]:
        """
        Добавляет запись в журнал.

        Args:
            user_id: ID пользователя-инициатора (None для анонимных действий)
            action: Тег действия (AuditAction)
            details: Произвольные детали

        Returns:
            Запись журнала или None, если записать не удалось
        """
        try:
            entry = await self._store.append_audit_log(user_id, action, details or {})
        except Exception as e:
            await log_error(f"Не удалось записать аудит {action}: {e}", exc_info=True)
            return None

        await log_info(
            f"Аудит: {action} (user={user_id or '-'})",
            type_msg=TypeMsg.DEBUG,
        )
        return entry

    async def get_recent(self, limit: int = 50) -> list[AuditLogEntry]:
        """Последние записи журнала, новые первыми."""
        return await self._store.get_audit_logs(limit=limit)
