# src/services/api/__init__.py
"""
HTTP API (FastAPI) и WebSocket канал для дашбордов пассажира,
водителя и администратора.

Endpoints (префикс /api):
- /auth/register, /auth/login, /auth/me
- /calculate-price
- /rides, /rides/pending, /rides/{id}, /rides/{id}/accept|start|complete|cancel
- /favorites
- /admin/stats, /admin/users, /admin/rides, /admin/drivers/{id}/verify,
  /admin/drivers/{id}/subscription, /admin/audit-logs
- /health
- WebSocket /ws
"""
