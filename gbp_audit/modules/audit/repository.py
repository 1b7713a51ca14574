"""Audit Repository - latest-per-key storage plus history for insights.

The orchestrator depends only on :class:`AuditRepository`; the in-memory
and SQLAlchemy backends are interchangeable.  Both are append-only: ``put``
never merges a new result into an older one.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from gbp_audit.database import get_session
from gbp_audit.exceptions import RepositoryFailure
from gbp_audit.models.audit import AuditRecord
from gbp_audit.results import AuditResult
from gbp_audit.utils.helpers import ensure_aware

logger = logging.getLogger(__name__)

AuditKey = tuple[str, str]


class AuditRepository(ABC):
    """Storage contract keyed by ``(user_id, entity_id)``."""

    @abstractmethod
    def get_latest(self, user_id: str, entity_id: str) -> Optional[AuditResult]:
        """Return the most recent audit for the key, or None."""

    @abstractmethod
    def put(self, result: AuditResult) -> None:
        """Store *result*; it becomes the latest for its key."""

    @abstractmethod
    def history(self, user_id: str, entity_id: str, limit: int | None = None) -> list[AuditResult]:
        """Stored audits for the key, most recent first."""


class InMemoryAuditRepository(AuditRepository):
    """Process-local store, useful for tests and single-process hosts."""

    def __init__(self) -> None:
        self._records: dict[AuditKey, list[AuditResult]] = defaultdict(list)
        self._lock = threading.Lock()

    def get_latest(self, user_id: str, entity_id: str) -> Optional[AuditResult]:
        with self._lock:
            records = self._records.get((user_id, entity_id))
            if not records:
                return None
            return max(records, key=lambda r: ensure_aware(r.timestamp))

    def put(self, result: AuditResult) -> None:
        with self._lock:
            self._records[(result.user_id, result.entity_id)].append(result)
        logger.info(
            "Stored audit %s for user=%s entity=%s (score %d)",
            result.id, result.user_id, result.entity_id, result.overall_score,
        )

    def history(self, user_id: str, entity_id: str, limit: int | None = None) -> list[AuditResult]:
        with self._lock:
            records = list(self._records.get((user_id, entity_id), []))
        # Stable sort: equal timestamps keep newest-inserted first.
        records.reverse()
        records.sort(key=lambda r: ensure_aware(r.timestamp), reverse=True)
        return records[:limit] if limit is not None else records


class SqlAlchemyAuditRepository(AuditRepository):
    """Repository backed by the ``audit_records`` table.

    Relies on the module-level engine configured through
    :func:`gbp_audit.database.init_db`.
    """

    def get_latest(self, user_id: str, entity_id: str) -> Optional[AuditResult]:
        rows = self._query(user_id, entity_id, limit=1)
        return rows[0] if rows else None

    def put(self, result: AuditResult) -> None:
        record = AuditRecord(
            audit_id=result.id,
            user_id=result.user_id,
            entity_id=result.entity_id,
            timestamp=ensure_aware(result.timestamp),
            overall_score=result.overall_score,
            profile=result.profile,
            category_scores=dict(result.category_scores),
            payload=result.to_dict(),
        )
        try:
            with get_session() as session:
                session.add(record)
        except SQLAlchemyError as exc:
            logger.error("Failed to store audit %s: %s", result.id, exc)
            raise RepositoryFailure(f"Could not store audit {result.id}") from exc
        logger.info(
            "Stored audit %s for user=%s entity=%s (score %d)",
            result.id, result.user_id, result.entity_id, result.overall_score,
        )

    def history(self, user_id: str, entity_id: str, limit: int | None = None) -> list[AuditResult]:
        return self._query(user_id, entity_id, limit=limit)

    def _query(self, user_id: str, entity_id: str, limit: int | None) -> list[AuditResult]:
        stmt = (
            select(AuditRecord)
            .where(AuditRecord.user_id == user_id, AuditRecord.entity_id == entity_id)
            .order_by(AuditRecord.timestamp.desc(), AuditRecord.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with get_session() as session:
                rows = session.execute(stmt).scalars().all()
                return [AuditResult.from_dict(row.payload) for row in rows]
        except SQLAlchemyError as exc:
            logger.error("Failed to load audits for user=%s entity=%s: %s", user_id, entity_id, exc)
            raise RepositoryFailure(
                f"Could not load audits for user {user_id}, entity {entity_id}"
            ) from exc
