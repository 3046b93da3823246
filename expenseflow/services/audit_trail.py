"""Append-only history helpers for expenses."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from expenseflow.errors import AuditTrailError
from expenseflow.models import Expense, ExpenseHistoryEntry, ExpenseStatus, HistoryAction

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "System"

# Which history actions may close the trail for a given status.
_CLOSING_ACTIONS = {
    ExpenseStatus.PENDING: {HistoryAction.SUBMITTED},
    ExpenseStatus.ESCALATED: {HistoryAction.ESCALATED},
    ExpenseStatus.APPROVED: {HistoryAction.APPROVE},
    ExpenseStatus.REJECTED: {HistoryAction.REJECT},
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def append(
    expense: Expense,
    action: HistoryAction,
    actor_name: str,
    comment: Optional[str] = None,
    at: Optional[datetime] = None,
) -> ExpenseHistoryEntry:
    """Add exactly one entry at the end of the expense's history."""
    entry = ExpenseHistoryEntry(
        position=len(expense.history),
        action=action,
        actor_name=actor_name,
        occurred_at=at or utcnow(),
        comment=comment,
    )
    expense.history.append(entry)
    logger.debug("History %s appended to expense %s by %s", action.value, expense.id, actor_name)
    return entry


def last_action(expense: Expense) -> Optional[HistoryAction]:
    return expense.history[-1].action if expense.history else None


def verify_consistent(expense: Expense) -> None:
    """Raise AuditTrailError if status, approver and history disagree."""
    if not expense.history:
        raise AuditTrailError(f"Expense {expense.id} has no history.")

    if [entry.position for entry in expense.history] != list(range(len(expense.history))):
        raise AuditTrailError(f"History of expense {expense.id} is out of order.")

    action = last_action(expense)
    if action not in _CLOSING_ACTIONS[expense.status]:
        raise AuditTrailError(
            f"Expense {expense.id} is {expense.status.value} but its last history action is {action.value}."
        )

    if expense.status.is_terminal and expense.approver_id is not None:
        raise AuditTrailError(f"Expense {expense.id} is {expense.status.value} but still has an approver.")
    if expense.status is ExpenseStatus.ESCALATED and expense.approver_id is None:
        raise AuditTrailError(f"Expense {expense.id} is ESCALATED without an approver.")
