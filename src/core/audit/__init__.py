# src/core/audit/__init__.py
"""
Журнал аудита.
"""

from src.core.audit.models import AuditLogEntry

__all__ = ["AuditLogEntry"]
