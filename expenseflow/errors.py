"""Error taxonomy shared by the services and the HTTP layer."""
from __future__ import annotations

from typing import Iterable, List, Optional


class ExpenseFlowError(Exception):
    """Base class for failures surfaced to the caller."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(ExpenseFlowError):
    """Required fields missing or malformed. Nothing was persisted."""

    status_code = 400

    def __init__(self, message: str, problems: Optional[Iterable[str]] = None):
        super().__init__(message)
        self.problems: List[str] = list(problems or [])

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.problems:
            payload["problems"] = self.problems
        return payload


class Unauthorized(ExpenseFlowError):
    status_code = 403


class NotFound(ExpenseFlowError):
    status_code = 404


class InvalidTransition(ExpenseFlowError):
    """A decision was attempted on an expense that no longer awaits one."""

    status_code = 409


class ConflictError(ExpenseFlowError):
    """The record changed underneath a read-modify-write. Safe to retry."""

    status_code = 409


class AuditTrailError(ExpenseFlowError):
    status_code = 500


class ReceiptAnalysisError(ExpenseFlowError):
    status_code = 502
