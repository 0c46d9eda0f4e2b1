# src/shared/__init__.py
"""
Общий код между слоями.

Модули:
- models: базовые Pydantic-модели (camelCase алиасы, неизменяемые снимки)
"""

__all__: list[str] = []
