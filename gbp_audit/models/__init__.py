"""SQLAlchemy ORM models. Importing this package registers every table on Base.metadata."""

from gbp_audit.models.audit import AuditRecord

__all__ = [
    "AuditRecord",
]
