# src/infra/__init__.py
"""
Инфраструктурный слой.
Хранилище сущностей и начальные данные.
"""

from src.infra.store import BaseStore, MemoryStore

__all__ = [
    "BaseStore",
    "MemoryStore",
]
