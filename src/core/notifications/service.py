# src/core/notifications/service.py
"""
Сервис уведомлений.
Преобразует переходы статусов поездки в адресные real-time сообщения.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from src.common.constants import MessageType, UserRole, TypeMsg
from src.common.logger import log_info, log_error
from src.core.rides.models import RideWithDetails


class NotificationChannel(Protocol):
    """Канал доставки (WebSocket менеджер соединений)."""

    async def send_personal(self, user_id: str, message: dict[str, Any]) -> bool: ...

    async def broadcast(self, role_filter: Optional[UserRole], message: dict[str, Any]) -> int: ...


class NotificationService:
    """
    Сервис уведомлений.

    Доставка best-effort: неподключённые получатели пропускаются,
    ошибка доставки логируется и никогда не отменяет переход.

    | Переход  | Получатели                     | Тип сообщения  |
    |----------|--------------------------------|----------------|
    | create   | все авторизованные водители    | new_ride       |
    | accept   | пассажир поездки               | ride_accepted  |
    | start    | пассажир поездки               | ride_started   |
    | complete | пассажир поездки               | ride_completed |
    """

    def __init__(self, channel: NotificationChannel) -> None:
        """
        Инициализация сервиса.

        Args:
            channel: Канал доставки сообщений
        """
        self._channel = channel

    @staticmethod
    def _build(message_type: str, ride: RideWithDetails) -> dict[str, Any]:
        return {"type": message_type, "ride": ride.to_client()}

    async def ride_requested(self, ride: RideWithDetails) -> int:
        """Новая поездка: рассылка всем подключённым водителям."""
        try:
            sent = await self._channel.broadcast(UserRole.DRIVER, self._build(MessageType.NEW_RIDE, ride))
        except Exception as e:
            await log_error(f"Не удалось разослать new_ride для {ride.id}: {e}", exc_info=True)
            return 0

        await log_info(f"new_ride {ride.id} отправлено водителям: {sent}", type_msg=TypeMsg.DEBUG)
        return sent

    async def ride_accepted(self, ride: RideWithDetails) -> bool:
        return await self._notify_passenger(MessageType.RIDE_ACCEPTED, ride)

    async def ride_started(self, ride: RideWithDetails) -> bool:
        return await self._notify_passenger(MessageType.RIDE_STARTED, ride)

    async def ride_completed(self, ride: RideWithDetails) -> bool:
        return await self._notify_passenger(MessageType.RIDE_COMPLETED, ride)

    async def _notify_passenger(self, message_type: str, ride: RideWithDetails) -> bool:
        try:
            delivered = await self._channel.send_personal(ride.passenger_id, self._build(message_type, ride))
        except Exception as e:
            await log_error(f"Не удалось отправить {message_type} для {ride.id}: {e}", exc_info=True)
            return False

        await log_info(
            f"{message_type} {ride.id} -> {ride.passenger_id}: {'доставлено' if delivered else 'нет соединения'}",
            type_msg=TypeMsg.DEBUG,
        )
        return delivered
