"""Per-expense audit history."""
from __future__ import annotations

import enum

from sqlalchemy import event

from expenseflow import db
from expenseflow.errors import AuditTrailError


class HistoryAction(enum.Enum):
    SUBMITTED = "SUBMITTED"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    ESCALATED = "ESCALATED"


class ExpenseHistoryEntry(db.Model):
    __tablename__ = "expense_history"
    __table_args__ = (db.UniqueConstraint("expense_id", "position", name="uq_expense_history_position"),)

    id = db.Column(db.Integer, primary_key=True)
    expense_id = db.Column(db.Integer, db.ForeignKey("expenses.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)
    action = db.Column(db.Enum(HistoryAction, name="history_action"), nullable=False)
    actor_name = db.Column(db.String(200), nullable=False)
    occurred_at = db.Column(db.DateTime, nullable=False)
    comment = db.Column(db.Text, nullable=True)

    expense = db.relationship("Expense", back_populates="history")

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "actor_name": self.actor_name,
            "date": self.occurred_at.isoformat() if self.occurred_at else None,
            "comment": self.comment,
        }

    def __repr__(self) -> str:
        return f"<ExpenseHistoryEntry expense_id={self.expense_id} #{self.position} {self.action.value}>"


@event.listens_for(ExpenseHistoryEntry, "before_update")
def _refuse_update(mapper, connection, target):
    raise AuditTrailError(f"History entry #{target.position} of expense {target.expense_id} is immutable.")


@event.listens_for(ExpenseHistoryEntry, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise AuditTrailError(f"History entry #{target.position} of expense {target.expense_id} cannot be removed.")
