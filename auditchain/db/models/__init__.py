"""Database model registry. Import all models here so Alembic can discover them."""

from auditchain.db.models.audit import AuditLogEntry

__all__ = [
    "AuditLogEntry",
]
