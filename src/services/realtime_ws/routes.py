# src/services/realtime_ws/routes.py
"""
WebSocket endpoint /ws.

Входящие сообщения:
- {"type": "auth", "token": "..."} -> {"type": "auth_success", "userId": "..."}
  или {"type": "auth_error"}
- {"type": "ping"} -> {"type": "pong"}

Текстовые и бинарные кадры разбираются одинаково, некорректный JSON пропускается.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.common.constants import MessageType, TypeMsg
from src.common.logger import log_info, log_warning
from src.services.realtime_ws.connection_manager import ConnectionManager

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    manager: ConnectionManager = websocket.app.state.connection_manager
    session_id = await manager.connect(websocket)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            raw = _frame_text(message)
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await log_warning(f"Некорректное WS сообщение: {raw[:200]}")
                continue

            if isinstance(data, dict):
                await _handle_client_message(websocket, manager, session_id, data)

    except WebSocketDisconnect:
        await log_info(f"WS сессия {session_id} закрыта клиентом", type_msg=TypeMsg.DEBUG)
    finally:
        await manager.disconnect(session_id)


def _frame_text(message: dict[str, Any]) -> str:
    """Текст кадра; бинарные кадры декодируются как UTF-8."""
    if message.get("text") is not None:
        return message["text"]
    payload = message.get("bytes") or b""
    return payload.decode("utf-8", errors="replace")


async def _handle_client_message(
    websocket: WebSocket,
    manager: ConnectionManager,
    session_id: str,
    data: dict[str, Any],
) -> None:
    """Обработать сообщение от клиента."""
    message_type = data.get("type")

    if message_type == MessageType.AUTH:
        user_service = websocket.app.state.user_service
        identity = await user_service.verify_token(data.get("token"))
        if identity is None:
            await manager.send_to_session(session_id, {"type": MessageType.AUTH_ERROR})
            return

        await manager.authenticate(session_id, identity.user_id, identity.role)
        await manager.send_to_session(session_id, {
            "type": MessageType.AUTH_SUCCESS,
            "userId": identity.user_id,
        })

    elif message_type == MessageType.PING:
        await manager.send_to_session(session_id, {"type": MessageType.PONG})
