"""Persistence for expense records.

Every write goes through a single commit so an expense's status, approver
and history are stored together or not at all. Concurrent read-modify-write
cycles on the same expense are detected through the ``version`` column and
reported as :class:`ConflictError`.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence

from sqlalchemy.orm.exc import StaleDataError

from expenseflow.errors import ConflictError, NotFound, ValidationError
from expenseflow.models import Expense, db
from expenseflow.services import audit_trail

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("amount", "category", "description", "date_spent", "currency")

Mutation = Callable[[Expense], Any]


class ExpenseStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def create(self, expense: Expense) -> int:
        missing = [name for name in REQUIRED_FIELDS if getattr(expense, name) in (None, "")]
        if missing:
            raise ValidationError(f"Missing fields: {', '.join(missing)}", missing)

        self.session.add(expense)
        try:
            audit_trail.verify_consistent(expense)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info("Expense %s created for user %s", expense.id, expense.user_id)
        return expense.id

    def get(self, expense_id: int) -> Expense:
        expense = self.session.get(Expense, expense_id)
        if expense is None:
            raise NotFound(f"Expense {expense_id} not found.")
        return expense

    def update(self, expense_id: int, mutation: Mutation) -> Expense:
        """Apply ``mutation`` to the stored expense and commit atomically."""
        expense = self.get(expense_id)
        try:
            mutation(expense)
            audit_trail.verify_consistent(expense)
            self.session.commit()
        except StaleDataError as exc:
            self.session.rollback()
            logger.warning("Concurrent update detected on expense %s", expense_id)
            raise ConflictError(f"Expense {expense_id} was modified concurrently; reload and retry.") from exc
        except Exception:
            self.session.rollback()
            raise
        return expense

    def list_where(self, *criteria, order_by: Optional[Sequence] = None) -> List[Expense]:
        query = self.session.query(Expense).filter(*criteria)
        if order_by is not None:
            query = query.order_by(*order_by)
        return query.all()
