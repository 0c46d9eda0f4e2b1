# src/services/realtime_ws/connection_manager.py
"""
Менеджер WebSocket соединений.
Управляет сессиями, их привязкой к пользователям и рассылкой сообщений.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from fastapi import WebSocket

from src.common.constants import UserRole, TypeMsg
from src.common.logger import log_info, log_warning


@dataclass
class ConnectionInfo:
    """Информация о соединении."""
    websocket: WebSocket
    session_id: str
    user_id: Optional[str] = None
    role: Optional[UserRole] = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def authenticated(self) -> bool:
        return self.user_id is not None


class ConnectionManager:
    """
    Менеджер WebSocket соединений.

    Поддерживает:
    - Анонимные сессии до рукопожатия {"type": "auth", "token": ...}
    - Привязку сессии к пользователю и роли (новая сессия заменяет старую)
    - Персональные сообщения по user_id
    - Рассылку по роли или всем сессиям
    """

    def __init__(self) -> None:
        # session_id -> ConnectionInfo
        self._sessions: dict[str, ConnectionInfo] = {}

        # user_id -> session_id
        self._users: dict[str, str] = {}

        # Для статистики
        self._total_connections: int = 0
        self._total_messages_sent: int = 0

    @property
    def active_connections(self) -> int:
        """Количество активных соединений."""
        return len(self._sessions)

    async def connect(self, websocket: WebSocket) -> str:
        """
        Принять соединение как анонимную сессию.

        Returns:
            ID сессии
        """
        await websocket.accept()

        session_id = uuid4().hex
        self._sessions[session_id] = ConnectionInfo(websocket=websocket, session_id=session_id)
        self._total_connections += 1
        return session_id

    async def authenticate(self, session_id: str, user_id: str, role: UserRole) -> bool:
        """
        Привязать сессию к пользователю.

        Если у пользователя уже есть другая сессия, закрываем старую.
        """
        conn = self._sessions.get(session_id)
        if conn is None:
            return False

        old_session_id = self._users.get(user_id)
        if old_session_id is not None and old_session_id != session_id:
            old_conn = self._sessions.pop(old_session_id, None)
            if old_conn is not None:
                await self._close_connection(old_conn)

        # Сессия могла ранее принадлежать другому пользователю
        if conn.user_id is not None and self._users.get(conn.user_id) == session_id:
            del self._users[conn.user_id]

        conn.user_id = user_id
        conn.role = role
        self._users[user_id] = session_id

        await log_info(f"WS сессия {session_id} привязана к {user_id} ({role})", type_msg=TypeMsg.DEBUG)
        return True

    async def disconnect(self, session_id: str) -> None:
        """Отключить сессию."""
        conn = self._sessions.pop(session_id, None)
        if conn is None:
            return

        if conn.user_id is not None and self._users.get(conn.user_id) == session_id:
            del self._users[conn.user_id]

    async def send_to_session(self, session_id: str, message: dict[str, Any]) -> bool:
        """Ответ конкретной сессии (рукопожатие, pong)."""
        conn = self._sessions.get(session_id)
        if conn is None:
            return False
        return await self._send(conn, message)

    async def send_personal(self, user_id: str, message: dict[str, Any]) -> bool:
        """
        Отправить сообщение конкретному пользователю.

        Returns:
            True если сообщение отправлено, False если пользователь не подключен
        """
        session_id = self._users.get(user_id)
        if session_id is None:
            return False

        conn = self._sessions.get(session_id)
        if conn is None:
            return False
        return await self._send(conn, message)

    async def broadcast(self, role_filter: Optional[UserRole], message: dict[str, Any]) -> int:
        """
        Разослать сообщение.

        Args:
            role_filter: Только авторизованным сессиям с этой ролью;
                None: всем сессиям, включая анонимные
            message: Сообщение

        Returns:
            Количество успешно отправленных сообщений
        """
        if role_filter is None:
            targets = list(self._sessions.values())
        else:
            targets = [c for c in self._sessions.values() if c.authenticated and c.role == role_filter]

        sent_count = 0
        for conn in targets:
            if await self._send(conn, message):
                sent_count += 1
        return sent_count

    async def _send(self, conn: ConnectionInfo, message: dict[str, Any]) -> bool:
        """Отправка с отключением сессии при ошибке."""
        try:
            await conn.websocket.send_json(message)
        except Exception as e:
            await log_warning(f"WS сессия {conn.session_id} недоступна, отключаем: {e}")
            await self.disconnect(conn.session_id)
            return False

        self._total_messages_sent += 1
        return True

    def get_stats(self) -> dict[str, Any]:
        """Получить статистику."""
        return {
            "active_connections": len(self._sessions),
            "authenticated_connections": len(self._users),
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
            "connections_by_role": self._count_by_role(),
        }

    def _count_by_role(self) -> dict[str, int]:
        """Подсчёт соединений по роли."""
        counts: dict[str, int] = {}
        for conn in self._sessions.values():
            key = str(conn.role) if conn.role is not None else "anonymous"
            counts[key] = counts.get(key, 0) + 1
        return counts

    async def _close_connection(self, conn: ConnectionInfo) -> None:
        """Закрыть соединение."""
        try:
            await conn.websocket.close()
        except Exception as e:
            await log_info(f"Сессия {conn.session_id} уже закрыта: {e}", type_msg=TypeMsg.DEBUG)
