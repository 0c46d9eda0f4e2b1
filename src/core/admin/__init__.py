# src/core/admin/__init__.py
"""
Администрирование: статистика, верификация водителей, подписки, аудит.
"""
