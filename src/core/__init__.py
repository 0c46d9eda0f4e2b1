# src/core/__init__.py
"""
Доменный слой (Core Domain).
Чистая бизнес-логика, независимая от транспорта (HTTP/WebSocket).
"""

__all__: list[str] = []
