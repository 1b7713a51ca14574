"""Persisted audit SQLAlchemy models."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from gbp_audit.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditRecord(Base):
    """One completed audit for a (user, entity) pair.

    Rows are append-only: the latest audit is the row with the greatest
    ``timestamp`` for the key, and older rows are the insight history.
    """

    __tablename__ = "audit_records"
    __table_args__ = (
        Index("ix_audit_records_key_ts", "user_id", "entity_id", "timestamp"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    audit_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    profile: Mapped[str] = mapped_column(String(20), nullable=False, default="extended")
    category_scores: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def __repr__(self) -> str:
        return (
            f"<AuditRecord id={self.id} user={self.user_id!r} "
            f"entity={self.entity_id!r} score={self.overall_score}>"
        )
