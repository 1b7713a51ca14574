"""Error taxonomy for the audit pipeline."""

from __future__ import annotations


class AuditError(Exception):
    """Base class for every error raised by the audit core."""


class InsufficientCredit(AuditError):
    """The user's credit balance does not cover the cost of one audit run."""

    def __init__(self, user_id: str, balance: int, required: int) -> None:
        self.user_id = user_id
        self.balance = balance
        self.required = required
        super().__init__(
            f"Insufficient credit for user {user_id}: balance {balance}, required {required}"
        )


class InvalidSignalData(AuditError):
    """A required field is missing or malformed in a normalized signal bundle."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Invalid or missing signal field: {field}")


class AnalysisFailure(AuditError):
    """An analyzer or scorer raised unexpectedly; *stage* names where."""

    def __init__(self, stage: str, message: str | None = None) -> None:
        self.stage = stage
        super().__init__(message or f"Audit failed during stage: {stage}")


class RepositoryFailure(AuditError):
    """The audit store could not be read or written."""
