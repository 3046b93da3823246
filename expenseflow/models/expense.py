"""Expense model definitions."""
from __future__ import annotations

import enum

from expenseflow import db


class ExpenseStatus(enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"

    @property
    def is_terminal(self) -> bool:
        return self in (ExpenseStatus.APPROVED, ExpenseStatus.REJECTED)


class Expense(db.Model):
    __tablename__ = "expenses"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False)
    converted_amount = db.Column(db.Numeric(12, 2), nullable=True)
    category = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=False)
    merchant = db.Column(db.String(255), nullable=False, default="Unknown")
    date_spent = db.Column(db.Date, nullable=False)
    status = db.Column(db.Enum(ExpenseStatus, name="expense_status"), nullable=False, default=ExpenseStatus.PENDING)
    receipt_image = db.Column(db.Text, nullable=True)
    approver_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, server_default=db.func.now(), nullable=False)

    history = db.relationship(
        "ExpenseHistoryEntry",
        back_populates="expense",
        order_by="ExpenseHistoryEntry.position",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self, include_history: bool = True) -> dict:
        payload = {
            "id": self.id,
            "user_id": self.user_id,
            "amount": float(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "converted_amount": float(self.converted_amount)
            if self.converted_amount is not None
            else None,
            "category": self.category,
            "description": self.description,
            "merchant": self.merchant,
            "date": self.date_spent.isoformat() if self.date_spent else None,
            "status": self.status.value if self.status else None,
            "receipt_image": self.receipt_image,
            "approver_id": self.approver_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_history:
            payload["history"] = [entry.to_dict() for entry in self.history]
        return payload

    def __repr__(self) -> str:
        return f"<Expense id={self.id} status={self.status.value if self.status else None}>"
