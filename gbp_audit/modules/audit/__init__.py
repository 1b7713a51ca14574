"""Audit orchestration, storage and credit gating."""

from gbp_audit.modules.audit.credits import AUDIT_CREDIT_COST, CreditChecker, StaticCreditChecker
from gbp_audit.modules.audit.locks import KeyedLocks
from gbp_audit.modules.audit.orchestrator import AuditOrchestrator, RunState
from gbp_audit.modules.audit.providers import SignalProvider, StaticSignalProvider
from gbp_audit.modules.audit.repository import (
    AuditRepository,
    InMemoryAuditRepository,
    SqlAlchemyAuditRepository,
)

__all__ = [
    "AUDIT_CREDIT_COST",
    "CreditChecker",
    "StaticCreditChecker",
    "KeyedLocks",
    "AuditOrchestrator",
    "RunState",
    "SignalProvider",
    "StaticSignalProvider",
    "AuditRepository",
    "InMemoryAuditRepository",
    "SqlAlchemyAuditRepository",
]
