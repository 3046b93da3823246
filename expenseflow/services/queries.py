"""Read-only expense views."""
from __future__ import annotations

from typing import List, Optional

from expenseflow.models import Expense, ExpenseStatus
from expenseflow.services.directory import Directory
from expenseflow.services.expense_store import ExpenseStore

NEWEST_FIRST = (Expense.id.desc(),)


class ExpenseQueries:
    def __init__(self, store: Optional[ExpenseStore] = None, directory: Optional[Directory] = None):
        self.store = store or ExpenseStore()
        self.directory = directory or Directory()

    def expenses_of_user(self, user_id: int) -> List[Expense]:
        return self.store.list_where(Expense.user_id == user_id, order_by=NEWEST_FIRST)

    def pending_approvals_for(self, approver_id: int) -> List[Expense]:
        # ESCALATED expenses are not listed here, even for their approver.
        return self.store.list_where(
            Expense.approver_id == approver_id,
            Expense.status == ExpenseStatus.PENDING,
            order_by=NEWEST_FIRST,
        )

    def company_expenses(self, company_id: int) -> List[Expense]:
        user_ids = self.directory.user_ids_in(company_id)
        if not user_ids:
            return []
        return self.store.list_where(Expense.user_id.in_(user_ids), order_by=NEWEST_FIRST)

    def all_expenses(self) -> List[Expense]:
        """Every expense in the store. Callers must restrict this to admins."""
        return self.store.list_where(order_by=NEWEST_FIRST)
