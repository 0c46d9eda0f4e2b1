# src/services/realtime_ws/__init__.py
"""
Realtime WebSocket канал.

Обеспечивает:
- WebSocket соединения для дашбордов
- Рукопожатие с токеном доступа
- Адресные уведомления о поездках
"""
