# src/services/__init__.py
"""
Транспортный слой приложения.

Сервисы:
- api: HTTP API (FastAPI) для дашбордов пассажира, водителя и администратора
- realtime_ws: WebSocket канал с адресными уведомлениями о поездках
"""

__all__: list[str] = []
